"""Content model conformance of an element's recorded children."""
from collections import Counter
from typing import List, NamedTuple, Sequence, Set

from ..models.types import (
    ContentItem,
    ContentModel,
    ContentModelType,
    DiagnosticCode,
    ElementItem,
    GroupItem,
    ModelItem,
    TextItem,
    ValidationError,
    ValidationSeverity,
    exceeds,
    iter_item_element_names,
)


class ChildRef(NamedTuple):
    """A child element as seen by the structural pass."""
    name: str
    line: int
    column: int = 1


def _error(message: str, child: ChildRef, code: DiagnosticCode,
           severity: ValidationSeverity = ValidationSeverity.ERROR) -> ValidationError:
    return ValidationError(message, child.line, child.column, severity, code)


def validate_content_model(
    parent: str,
    model: ContentModel,
    children: Sequence[ChildRef]
) -> List[ValidationError]:
    """
    Check ``children`` of ``parent`` against its compiled model.

    Args:
        parent: Parent element name, used in messages
        model: Compiled content model of the parent
        children: Child elements in document order

    Returns:
        List[ValidationError]: Choice, cardinality and empty-content problems
    """
    if model.type == ContentModelType.CHOICE:
        return _validate_choice(parent, model, children)

    elif model.type in (ContentModelType.SEQUENCE, ContentModelType.INTERLEAVE, ContentModelType.GROUP):
        return _validate_counts(parent, model, children)

    elif model.type == ContentModelType.EMPTY:
        if children:
            return [_error(
                f"<{parent}> should be empty but contains children",
                children[0], DiagnosticCode.INVALID_EMPTY_CONTENT,
            )]
        return []

    return []


def _validate_choice(parent: str, model: ContentModel,
                     children: Sequence[ChildRef]) -> List[ValidationError]:
    alternatives: List[Set[str]] = []
    for item in model.items:
        names = set(iter_item_element_names(item))
        if names:
            alternatives.append(names)

    used: List[int] = []
    for child in children:
        for position, names in enumerate(alternatives):
            if child.name in names and position not in used:
                used.append(position)

    if len(used) < 2:
        return []

    first, second = alternatives[used[0]], alternatives[used[1]]
    first_used = next(c for c in children if c.name in first)
    for child in children:
        if child.name in second and child.name not in first:
            return [_error(
                f"<{child.name}> cannot be used together with <{first_used.name}> "
                f"inside <{parent}> (choice violation)",
                child, DiagnosticCode.CHOICE_VIOLATION,
            )]
    return []


def _validate_counts(parent: str, model: ContentModel,
                     children: Sequence[ChildRef]) -> List[ValidationError]:
    errors: List[ValidationError] = []
    counts = Counter(child.name for child in children)

    for item in model.items:
        if isinstance(item, ElementItem):
            count = counts[item.name]
            if not count:
                # Absent children are reported by the required-children check
                continue

            occurrences = [c for c in children if c.name == item.name]
            if count < item.min_occurs:
                errors.append(_error(
                    f"<{item.name}> must appear at least {item.min_occurs} time(s) in <{parent}>",
                    occurrences[0], DiagnosticCode.CARDINALITY_BELOW_MINIMUM,
                    ValidationSeverity.WARNING,
                ))
            if exceeds(count, item.max_occurs):
                errors.append(_error(
                    f"<{item.name}> can appear at most {item.max_occurs} time(s) in <{parent}>",
                    occurrences[item.max_occurs], DiagnosticCode.CARDINALITY_EXCEEDED,
                ))

        elif isinstance(item, GroupItem):
            errors.extend(validate_content_model(parent, item.content, children))

        elif isinstance(item, (TextItem, ModelItem)):
            continue

        else:
            raise TypeError(f"Unknown content item: {item!r}")

    return errors


def get_required_children(model: ContentModel) -> List[str]:
    """Names of child elements the model requires; none for a choice or an optional model."""
    if model.type == ContentModelType.CHOICE or model.min_occurs == 0:
        return []

    required: List[str] = []
    for item in model.items:
        for name in _required_names(item):
            if name not in required:
                required.append(name)
    return required


def _required_names(item: ContentItem) -> List[str]:
    if isinstance(item, ElementItem):
        return [item.name] if item.min_occurs > 0 else []
    elif isinstance(item, GroupItem):
        return get_required_children(item.content) if item.min_occurs > 0 else []
    elif isinstance(item, (TextItem, ModelItem)):
        return []
    raise TypeError(f"Unknown content item: {item!r}")
