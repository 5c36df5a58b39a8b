import pytest

from teiedit.config import ValidatorConfig
from teiedit.schema.compiler import compile_schema
from teiedit.schema.models.types import (
    UNBOUNDED,
    ContentModel,
    ContentModelType,
    DiagnosticCode,
    ElementItem,
    ElementSpec,
    GroupItem,
    SchemaInfo,
    ValidationSeverity,
)
from teiedit.schema.validators import (
    ChildRef,
    check_structure,
    get_required_children,
    validate_content_model,
    validate_document,
)


def codes(errors):
    return [error.code for error in errors]


@pytest.fixture
def p_requires_s():
    """Schema where <p> needs at least one <s>"""
    return SchemaInfo(schema_id="ps", name="PS", elements={
        "p": ElementSpec("p", content_model=ContentModel(
            ContentModelType.SEQUENCE, (ElementItem("s", 1, UNBOUNDED),)
        )),
        "s": ElementSpec("s", content_model=ContentModel(ContentModelType.TEXT)),
    })


@pytest.fixture
def nesting_schema():
    """Schema where <div> holds <p> and <p> holds text"""
    return SchemaInfo(schema_id="div", name="Div", elements={
        "div": ElementSpec("div", content_model=ContentModel(
            ContentModelType.SEQUENCE, (ElementItem("p", 0, UNBOUNDED),)
        )),
        "p": ElementSpec("p", content_model=ContentModel(ContentModelType.TEXT)),
    })


# Core behaviour

def test_choice_violation_reports_second_alternative(sample_schema):
    """Test that quote and q together inside cit give one error on line 4"""
    text = (
        '<?xml version="1.0"?>\n'
        '<cit>\n'
        '  <quote>To be</quote>\n'
        '  <q>or not</q>\n'
        '</cit>\n'
    )

    errors = validate_document(text, sample_schema)

    assert len(errors) == 1
    assert errors[0].severity == ValidationSeverity.ERROR
    assert errors[0].code == DiagnosticCode.CHOICE_VIOLATION
    assert errors[0].line == 4
    assert errors[0].message == "<q> cannot be used together with <quote> inside <cit> (choice violation)"


def test_missing_required_child_is_a_single_warning(p_requires_s):
    errors = validate_document("<p></p>", p_requires_s)

    assert len(errors) == 1
    assert errors[0].severity == ValidationSeverity.WARNING
    assert errors[0].code == DiagnosticCode.MISSING_REQUIRED_CHILD
    assert errors[0].message == "<p> requires <s> child element"


def test_mismatched_close_recovers(nesting_schema):
    """Test that </div> discards the open <p> without cascading errors"""
    assert check_structure("<div><p>text</div>", nesting_schema) == []


def test_mismatched_close_is_malformed_for_full_validation(nesting_schema):
    errors = validate_document("<div><p>text</div>", nesting_schema)

    assert codes(errors) == [DiagnosticCode.MALFORMED_DOCUMENT]
    assert errors[0].severity == ValidationSeverity.ERROR


def test_large_clean_document(sample_schema):
    lines = ['<TEI xml:id="doc">', "<teiHeader>", "<title>Long</title>", "</teiHeader>", "<text>", "<body>"]
    while len(lines) < 9997:
        lines.append('<p n="x">Some <hi rend="bold">text</hi> and <name type="part">a name</name><lb/></p>')
    lines.extend(["</body>", "</text>", "</TEI>"])
    text = "\n".join(lines)

    assert len(text.splitlines()) == 10000
    assert validate_document(text, sample_schema) == []


# Well-formedness gate

def test_blank_document_has_no_diagnostics(sample_schema):
    assert validate_document("", sample_schema) == []
    assert validate_document("  \n\t ", sample_schema) == []


def test_malformed_tag_start_position(sample_schema):
    errors = validate_document("<p>\n  a < b\n</p>", sample_schema)

    assert len(errors) == 1
    assert (errors[0].line, errors[0].column) == (2, 5)


def test_orphan_closing_tag_message(sample_schema):
    errors = validate_document("<p>text</p>\n</hi>", sample_schema)

    assert len(errors) == 1
    assert errors[0].message == "Orphan closing tag </hi> without matching opening tag"
    assert errors[0].line == 2


def test_unclosed_tag_message(sample_schema):
    errors = validate_document("<p>\n<hi rend='bold'>text\n</p>", sample_schema)

    assert len(errors) == 1
    assert errors[0].message == "Unclosed tag <hi>"
    assert (errors[0].line, errors[0].column) == (2, 1)


def test_tags_in_comments_and_cdata_are_ignored(sample_schema):
    text = "<p><!-- <bogus> --><![CDATA[ <nope> a < b ]]>ok</p>"

    assert validate_document(text, sample_schema) == []


def test_lone_surrogate_is_malformed_not_raised(sample_schema):
    errors = validate_document("<p>\ud800</p>", sample_schema)

    assert codes(errors) == [DiagnosticCode.MALFORMED_DOCUMENT]


def test_declared_encoding_is_ignored_for_text_input(sample_schema):
    """Test that a UTF-16 declaration on an already decoded snapshot is not an error"""
    text = '<?xml version="1.0" encoding="UTF-16"?>\n<p>x</p>'

    assert validate_document(text, sample_schema) == []


# Structural checks

def test_unknown_element_is_a_warning(sample_schema):
    errors = validate_document("<p><foo bar='1'/></p>", sample_schema)

    assert codes(errors) == [DiagnosticCode.UNKNOWN_ELEMENT]
    assert errors[0].severity == ValidationSeverity.WARNING
    assert (errors[0].line, errors[0].column) == (1, 4)


def test_invalid_nesting(sample_schema):
    errors = validate_document("<p><div><p>x</p></div></p>", sample_schema)

    assert DiagnosticCode.INVALID_NESTING in codes(errors)
    nesting = errors[codes(errors).index(DiagnosticCode.INVALID_NESTING)]
    assert nesting.message == "<div> is not allowed inside <p>"
    assert nesting.column == 4


def test_unknown_attribute_position(sample_schema):
    errors = validate_document('<p\n   foo="1">x</p>', sample_schema)

    assert codes(errors) == [DiagnosticCode.UNKNOWN_ATTRIBUTE]
    assert errors[0].message == 'Unknown attribute "foo" on <p>'
    assert (errors[0].line, errors[0].column) == (2, 4)


def test_namespace_declarations_are_exempt(sample_schema):
    text = '<TEI xmlns="http://www.tei-c.org/ns/1.0" xmlns:x="urn:x"><teiHeader><title/></teiHeader><text><body><p/></body></text></TEI>'

    assert validate_document(text, sample_schema) == []


def test_invalid_enumerated_value_is_truncated(sample_schema):
    errors = validate_document('<div type="volume"><p>x</p></div>', sample_schema)

    assert codes(errors) == [DiagnosticCode.INVALID_ATTRIBUTE_VALUE]
    assert errors[0].severity == ValidationSeverity.WARNING
    assert errors[0].message == (
        'Invalid value "volume" for @type. Allowed: chapter, section, appendix, preface, part...'
    )


def test_enumerated_value_preview_limit_is_configurable(sample_schema):
    errors = validate_document(
        '<div type="volume"><p>x</p></div>', sample_schema, ValidatorConfig(enum_preview_limit=2)
    )

    assert errors[0].message.endswith("Allowed: chapter, section...")


def test_empty_and_open_list_values_are_accepted(sample_schema):
    text = '<div type="" subtype="whatever"><p>x</p></div>'

    assert validate_document(text, sample_schema) == []


def test_quoted_value_may_contain_angle_bracket(sample_schema):
    errors = validate_document('<div n="x>y"><p/></div>', sample_schema)

    assert errors == []


def test_missing_required_attribute(sample_schema):
    errors = validate_document("<ptr/>", sample_schema)

    assert codes(errors) == [DiagnosticCode.MISSING_REQUIRED_ATTRIBUTE]
    assert errors[0].message == 'Missing required attribute "target" on <ptr>'


def test_self_closing_with_required_children(sample_schema):
    errors = validate_document("<TEI/>", sample_schema)

    assert codes(errors) == [DiagnosticCode.SELF_CLOSING_WITH_REQUIRED_CHILDREN]
    assert errors[0].message == "<TEI/> is self-closing but requires children: teiHeader, text"


def test_self_closing_preview_is_truncated():
    schema = SchemaInfo(schema_id="s", name="S", elements={
        "r": ElementSpec("r", content_model=ContentModel(ContentModelType.SEQUENCE, tuple(
            ElementItem(name) for name in ("a", "b", "c", "d")
        ))),
    })

    errors = validate_document("<r/>", schema)

    assert errors[0].message == "<r/> is self-closing but requires children: a, b, c..."


def test_cardinality_exceeded_at_first_excess(sample_schema):
    text = "<respStmt>\n<resp>ed.</resp>\n<name>A</name>\n<name>B</name>\n</respStmt>"

    errors = validate_document(text, sample_schema)

    assert codes(errors) == [DiagnosticCode.CARDINALITY_EXCEEDED]
    assert errors[0].message == "<name> can appear at most 1 time(s) in <respStmt>"
    assert errors[0].line == 4


def test_cardinality_below_minimum(sample_schema):
    errors = validate_document("<list><item>one</item></list>", sample_schema)

    assert codes(errors) == [DiagnosticCode.CARDINALITY_BELOW_MINIMUM]
    assert errors[0].severity == ValidationSeverity.WARNING
    assert errors[0].message == "<item> must appear at least 2 time(s) in <list>"


def test_absent_child_reported_once(sample_schema):
    errors = validate_document("<list><head>h</head></list>", sample_schema)

    assert codes(errors) == [DiagnosticCode.MISSING_REQUIRED_CHILD]


def test_empty_element_with_children(sample_schema):
    errors = check_structure("<lb><hi rend='bold'>x</hi></lb>", sample_schema)

    assert codes(errors) == [DiagnosticCode.INVALID_EMPTY_CONTENT]
    assert errors[0].message == "<lb> should be empty but contains children"


def test_unclosed_frames_at_end_of_input(nesting_schema):
    errors = check_structure("<div>\n  <p>text", nesting_schema)

    assert codes(errors) == [DiagnosticCode.UNCLOSED_TAG, DiagnosticCode.UNCLOSED_TAG]
    assert [e.message for e in errors] == ["Unclosed tag <div>", "Unclosed tag <p>"]
    assert (errors[1].line, errors[1].column) == (2, 3)


def test_unmatched_closing_tag_is_ignored(nesting_schema):
    assert check_structure("<div></p></div>", nesting_schema) == []


def test_doctype_with_internal_subset_is_skipped(nesting_schema):
    text = '<!DOCTYPE div [\n  <!ENTITY x "<p>">\n]>\n<div><p>x</p></div>'

    assert check_structure(text, nesting_schema) == []


# Content model conformance

def test_repeatable_choice_is_still_exclusive():
    """Test that a (0,unbounded) alternation still rejects a second alternative"""
    corpus = {"elements": [
        {"ident": "c", "content": [{
            "type": "alternate", "minOccurs": "0", "maxOccurs": "unbounded",
            "content": [{"type": "elementRef", "key": "a"}, {"type": "elementRef", "key": "b"}],
        }]},
        {"ident": "a", "content": [{"type": "empty"}]},
        {"ident": "b", "content": [{"type": "empty"}]},
    ]}
    schema = compile_schema(corpus, schema_id="c", name="C")

    errors = validate_document("<c><a/>\n<b/></c>", schema)

    assert codes(errors) == [DiagnosticCode.CHOICE_VIOLATION]
    assert (errors[0].line, errors[0].column) == (2, 1)
    assert errors[0].message == "<b> cannot be used together with <a> inside <c> (choice violation)"


def test_choice_inside_repeatable_group_is_exclusive():
    inner = ContentModel(ContentModelType.CHOICE, (ElementItem("a"), ElementItem("b")))
    model = ContentModel(ContentModelType.SEQUENCE, (GroupItem(inner, 1, UNBOUNDED),))

    errors = validate_content_model("x", model, [ChildRef("a", 1), ChildRef("b", 2)])

    assert codes(errors) == [DiagnosticCode.CHOICE_VIOLATION]


def test_choice_inside_single_group_is_exclusive():
    inner = ContentModel(ContentModelType.CHOICE, (ElementItem("a"), ElementItem("b")))
    model = ContentModel(ContentModelType.SEQUENCE, (GroupItem(inner),))

    errors = validate_content_model("x", model, [ChildRef("a", 1), ChildRef("b", 2, 7)])

    assert codes(errors) == [DiagnosticCode.CHOICE_VIOLATION]
    assert (errors[0].line, errors[0].column) == (2, 7)


def test_max_checks_apply_inside_repeatable_group():
    inner = ContentModel(ContentModelType.SEQUENCE, (ElementItem("a"),))
    model = ContentModel(ContentModelType.SEQUENCE, (GroupItem(inner, 0, UNBOUNDED),))

    errors = validate_content_model("x", model, [ChildRef("a", 1), ChildRef("a", 2, 3)])

    assert codes(errors) == [DiagnosticCode.CARDINALITY_EXCEEDED]
    assert (errors[0].line, errors[0].column) == (2, 3)


def test_element_without_model_accepts_any_children(sample_schema):
    """Test that anyElement content gives no empty-content error"""
    errors = validate_document("<egXML><p>x</p><foo/></egXML>", sample_schema)

    assert codes(errors) == [DiagnosticCode.UNKNOWN_ELEMENT]


def test_nested_self_referencing_macro_does_not_constrain_siblings():
    corpus = {
        "macros": [{"ident": "m", "content": [{"type": "macroRef", "key": "m"}]}],
        "elements": [
            {"ident": "e", "content": [{"type": "macroRef", "key": "m"}, {"type": "elementRef", "key": "b"}]},
            {"ident": "b", "content": [{"type": "textNode"}]},
        ],
    }
    schema = compile_schema(corpus, schema_id="e", name="E")

    assert validate_document("<e><b>x</b></e>", schema) == []


def test_required_children():
    model = ContentModel(ContentModelType.SEQUENCE, (
        ElementItem("a"),
        ElementItem("b", 0, 1),
        GroupItem(ContentModel(ContentModelType.SEQUENCE, (ElementItem("c"), ElementItem("a")))),
        GroupItem(ContentModel(ContentModelType.SEQUENCE, (ElementItem("d"),)), 0, 1),
    ))

    assert get_required_children(model) == ["a", "c"]


def test_required_children_of_choice_and_optional_models():
    choice = ContentModel(ContentModelType.CHOICE, (ElementItem("a"), ElementItem("b")))
    optional = ContentModel(ContentModelType.SEQUENCE, (ElementItem("a"),), 0, 1)

    assert get_required_children(choice) == []
    assert get_required_children(optional) == []


def test_validator_keeps_no_state(sample_schema):
    text = "<list><item>one</item></list>"

    assert validate_document(text, sample_schema) == validate_document(text, sample_schema)


def test_diagnostic_serialization(p_requires_s):
    (error,) = validate_document("<p></p>", p_requires_s)

    assert error.to_dict() == {
        "message": "<p> requires <s> child element",
        "line": 1,
        "column": 1,
        "severity": "warning",
        "code": "missing_required_child",
    }
