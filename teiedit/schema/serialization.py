"""JSON-compatible compiled schema modules."""
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import json

from .models.types import (
    UNBOUNDED,
    AttrSpec,
    ContentItem,
    ContentModel,
    ContentModelType,
    DeclaredContentType,
    ElementItem,
    ElementSpec,
    GroupItem,
    MaxOccurs,
    ModelItem,
    PathLike,
    SchemaCorpusError,
    SchemaInfo,
    TextItem,
    is_unbounded,
)

FORMAT_VERSION = 1


def _dump_max(max_occurs: MaxOccurs):
    return "unbounded" if is_unbounded(max_occurs) else max_occurs


def _load_max(raw: Any) -> MaxOccurs:
    return UNBOUNDED if raw == "unbounded" else int(raw)


def _dump_attr(attr: AttrSpec) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": attr.name}
    if attr.required:
        data["required"] = True
    for key, value in (
        ("values", attr.values),
        ("defaultValue", attr.default_value),
        ("datatype", attr.datatype),
        ("documentation", attr.documentation),
        ("suggestedValues", attr.suggested_values),
    ):
        if value is not None:
            data[key] = list(value) if isinstance(value, tuple) else value
    return data


def _load_attr(data: Mapping[str, Any]) -> AttrSpec:
    values = data.get("values")
    suggested = data.get("suggestedValues")
    return AttrSpec(
        name=data["name"],
        required=bool(data.get("required", False)),
        values=tuple(values) if values is not None else None,
        default_value=data.get("defaultValue"),
        datatype=data.get("datatype"),
        documentation=data.get("documentation"),
        suggested_values=tuple(suggested) if suggested is not None else None,
    )


def _dump_item(item: ContentItem) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "kind": item.kind.value,
        "minOccurs": item.min_occurs,
        "maxOccurs": _dump_max(item.max_occurs),
    }
    if isinstance(item, (ElementItem, ModelItem)):
        data["name"] = item.name
    elif isinstance(item, GroupItem):
        data["content"] = dump_content_model(item.content)
    elif not isinstance(item, TextItem):
        raise TypeError(f"Unknown content item: {item!r}")
    return data


def _load_item(data: Mapping[str, Any]) -> ContentItem:
    kind = data["kind"]
    min_occurs = int(data.get("minOccurs", 1))
    max_occurs = _load_max(data.get("maxOccurs", 1))
    if kind == "element":
        return ElementItem(data["name"], min_occurs, max_occurs)
    elif kind == "text":
        return TextItem(min_occurs, max_occurs)
    elif kind == "group":
        return GroupItem(load_content_model(data["content"]), min_occurs, max_occurs)
    elif kind == "model":
        return ModelItem(data["name"], min_occurs, max_occurs)
    raise ValueError(f"Unknown content item kind: {kind!r}")


def dump_content_model(model: ContentModel) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "type": model.type.value,
        "minOccurs": model.min_occurs,
        "maxOccurs": _dump_max(model.max_occurs),
    }
    if model.items:
        data["items"] = [_dump_item(item) for item in model.items]
    return data


def load_content_model(data: Mapping[str, Any]) -> ContentModel:
    return ContentModel(
        type=ContentModelType(data["type"]),
        items=tuple(_load_item(item) for item in data.get("items", ())),
        min_occurs=int(data.get("minOccurs", 1)),
        max_occurs=_load_max(data.get("maxOccurs", 1)),
    )


def _dump_element(spec: ElementSpec) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": spec.name,
        "attrClasses": list(spec.attr_classes),
        "modelClasses": list(spec.model_classes),
        "localAttrs": [_dump_attr(attr) for attr in spec.local_attrs],
        "children": sorted(spec.children),
    }
    if spec.documentation:
        data["documentation"] = spec.documentation
    if spec.content_model_type:
        data["contentModelType"] = spec.content_model_type.value
    if spec.content_model:
        data["contentModel"] = dump_content_model(spec.content_model)
    return data


def _load_element(data: Mapping[str, Any]) -> ElementSpec:
    content_type = data.get("contentModelType")
    content_model = data.get("contentModel")
    return ElementSpec(
        name=data["name"],
        documentation=data.get("documentation"),
        attr_classes=tuple(data.get("attrClasses", ())),
        model_classes=tuple(data.get("modelClasses", ())),
        local_attrs=tuple(_load_attr(attr) for attr in data.get("localAttrs", ())),
        children=frozenset(data.get("children", ())),
        content_model_type=DeclaredContentType(content_type) if content_type else None,
        content_model=load_content_model(content_model) if content_model else None,
    )


def dump_schema(schema: SchemaInfo) -> Dict[str, Any]:
    """Plain-data form of a compiled schema."""
    return {
        "formatVersion": FORMAT_VERSION,
        "id": schema.schema_id,
        "name": schema.name,
        "elements": [_dump_element(spec) for spec in schema.elements.values()],
        "attributeClasses": {
            name: [_dump_attr(attr) for attr in attrs]
            for name, attrs in schema.attribute_classes.items()
        },
        "attributeClassInheritance": {
            name: list(parents) for name, parents in schema.attribute_class_inheritance.items()
        },
        "elementAttributeClasses": {
            name: list(classes) for name, classes in schema.element_attribute_classes.items()
        },
    }


def load_schema(data: Mapping[str, Any]) -> SchemaInfo:
    """Rebuild a SchemaInfo from ``dump_schema`` output."""
    version = data.get("formatVersion")
    if version != FORMAT_VERSION:
        raise SchemaCorpusError(f"Unsupported compiled schema version: {version!r}", "compiled")

    try:
        elements: List[ElementSpec] = [_load_element(e) for e in data.get("elements", ())]
        return SchemaInfo(
            schema_id=data["id"],
            name=data["name"],
            elements={spec.name: spec for spec in elements},
            attribute_classes={
                name: tuple(_load_attr(attr) for attr in attrs)
                for name, attrs in data.get("attributeClasses", {}).items()
            },
            attribute_class_inheritance={
                name: tuple(parents)
                for name, parents in data.get("attributeClassInheritance", {}).items()
            },
            element_attribute_classes={
                name: tuple(classes)
                for name, classes in data.get("elementAttributeClasses", {}).items()
            },
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SchemaCorpusError(f"Invalid compiled schema: {e}", "compiled") from e


def save_schema(schema: SchemaInfo, path: PathLike, indent: Optional[int] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dump_schema(schema), f, ensure_ascii=False, indent=indent)
    return path


def read_schema(path: PathLike) -> SchemaInfo:
    with open(path, encoding="utf-8") as f:
        return load_schema(json.load(f))
