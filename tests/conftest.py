import pytest

from teiedit.schema.compiler import compile_schema


def _ref(kind, key=None, min_occurs=None, max_occurs=None, content=None):
    particle = {"type": kind}
    if key:
        particle["key"] = key
    if min_occurs is not None:
        particle["minOccurs"] = min_occurs
    if max_occurs is not None:
        particle["maxOccurs"] = max_occurs
    if content is not None:
        particle["content"] = content
    return particle


def _element(ident, content=None, models=(), atts=(), attributes=(), desc=None):
    spec = {
        "ident": ident,
        "classes": {"model": list(models), "atts": list(atts)},
        "attributes": list(attributes),
    }
    if content is not None:
        spec["content"] = content
    if desc:
        spec["desc"] = [desc]
    return spec


PARA = [_ref("macroRef", "macro.paraContent")]


@pytest.fixture
def sample_corpus():
    """A small TEI-like corpus covering classes, macros and cycles"""
    return {
        "title": "Mini TEI",
        "edition": "test",
        "macros": [
            {
                "ident": "macro.paraContent",
                "shortDesc": "paragraph\n  content",
                "content": [
                    _ref("alternate", min_occurs="0", max_occurs="unbounded", content=[
                        _ref("textNode"),
                        _ref("classRef", "model.phrase"),
                        _ref("classRef", "model.quoteLike"),
                    ]),
                ],
            },
            {
                "ident": "macro.selfRef",
                "content": [
                    _ref("alternate", content=[
                        _ref("textNode"),
                        _ref("macroRef", "macro.selfRef"),
                    ]),
                ],
            },
            {
                "ident": "macro.ping",
                "content": [_ref("elementRef", "hi"), _ref("macroRef", "macro.pong")],
            },
            {
                "ident": "macro.pong",
                "content": [_ref("elementRef", "name"), _ref("macroRef", "macro.ping")],
            },
        ],
        "classes": {
            "models": [
                {"ident": "model.pLike"},
                {"ident": "model.phrase"},
                {"ident": "model.quoteLike"},
                {"ident": "model.divLike"},
                {"ident": "model.emptyClass"},
            ],
            "attributes": [
                {
                    "ident": "att.global",
                    "classes": {"atts": ["att.global.linking"]},
                    "attributes": [
                        {"ident": "xml:id", "shortDesc": "identifier"},
                        {"ident": "n"},
                        {"ident": "rend"},
                    ],
                },
                {
                    "ident": "att.global.linking",
                    "classes": {"atts": ["att.global"]},
                    "attributes": [{"ident": "corresp"}, {"ident": "n", "usage": "req"}],
                },
                {
                    "ident": "att.typed",
                    "attributes": [
                        {
                            "ident": "type",
                            "valList": {"type": "closed", "valItem": [
                                {"ident": v} for v in
                                ("chapter", "section", "appendix", "preface", "part", "glossary")
                            ]},
                        },
                        {
                            "ident": "subtype",
                            "valList": {"type": "open", "valItem": [{"ident": "minor"}]},
                            "datatype": {"dataRef": {"key": "teidata.enumerated"}},
                        },
                    ],
                },
            ],
        },
        "datatypes": [{"ident": "teidata.enumerated", "desc": ["<p>a single token</p>"]}],
        "elements": [
            _element("TEI", [_ref("sequence", content=[
                _ref("elementRef", "teiHeader"), _ref("elementRef", "text"),
            ])], atts=["att.global"]),
            _element("teiHeader", [_ref("elementRef", "title")]),
            _element("title", PARA, atts=["att.global", "att.typed"]),
            _element("text", [_ref("elementRef", "body")]),
            _element("body", [
                _ref("alternate", min_occurs="1", max_occurs="unbounded", content=[
                    _ref("classRef", "model.divLike"),
                    _ref("classRef", "model.pLike"),
                ]),
            ]),
            _element("div", [_ref("sequence", content=[
                _ref("elementRef", "head", min_occurs="0"),
                _ref("alternate", min_occurs="1", max_occurs="unbounded", content=[
                    _ref("classRef", "model.pLike"),
                    _ref("classRef", "model.divLike"),
                ]),
            ])], models=["model.divLike"], atts=["att.global", "att.typed"]),
            _element("head", PARA, atts=["att.global"]),
            _element("p", PARA, models=["model.pLike"], atts=["att.global"],
                     desc="<p>marks paragraphs\nin prose.</p>"),
            _element("ab", PARA, models=["model.pLike", "model.undeclared"], atts=["att.global"]),
            _element("hi", PARA, models=["model.phrase"], atts=["att.global"], attributes=[
                {"ident": "rend", "usage": "req", "valList": {"valItem": [
                    {"ident": "bold"}, {"ident": "italic"},
                ]}},
            ]),
            _element("name", PARA, models=["model.phrase"], atts=["att.global", "att.typed"]),
            _element("lb", [_ref("empty")], models=["model.phrase"], atts=["att.global"]),
            _element("quote", PARA, models=["model.quoteLike"], atts=["att.global"]),
            _element("q", PARA, models=["model.quoteLike"], atts=["att.global"]),
            _element("cit", [_ref("alternate", content=[
                _ref("elementRef", "quote"), _ref("elementRef", "q"),
            ])], atts=["att.global"]),
            _element("list", [
                _ref("elementRef", "head", min_occurs="0"),
                _ref("elementRef", "item", min_occurs="2", max_occurs="unbounded"),
            ], atts=["att.global", "att.typed"]),
            _element("item", PARA, atts=["att.global"]),
            _element("respStmt", [_ref("elementRef", "resp"), _ref("elementRef", "name")]),
            _element("resp", [_ref("textNode")]),
            _element("ptr", [_ref("empty")], atts=["att.global"], attributes=[
                {"ident": "target", "usage": "req"},
            ]),
            _element("selfish", [_ref("macroRef", "macro.selfRef")]),
            _element("pingpong", [_ref("macroRef", "macro.ping")]),
            _element("twins", [_ref("macroRef", "macro.ping"), _ref("macroRef", "macro.ping")]),
            _element("bag", [_ref("classRef", "model.quoteLike", min_occurs="0", max_occurs="unbounded")]),
            _element("void", [_ref("classRef", "model.emptyClass")]),
            _element("egXML", [{"type": "anyElement"}]),
            _element("note", atts=["att.global"]),
        ],
    }


@pytest.fixture
def sample_schema(sample_corpus):
    """Compiled form of the sample corpus"""
    return compile_schema(sample_corpus, schema_id="mini", name="Mini TEI")
