"""Index mapping merge for the enriched target index."""
import json
from typing import Any, Dict, Mapping, Union

from esrag.errors import MappingParseError

SchemaFragment = Union[str, Mapping[str, Any]]


def vector_fields_mapping(dims: int) -> Dict[str, Dict[str, Any]]:
    """Mapping of the fields added by enrichment.

    Args:
        dims: Embedding dimensionality, uniform across the index

    Returns:
        Field name to schema fragment for titleEmbedding and bodyChunks
    """
    return {
        "titleEmbedding": {
            "type": "dense_vector",
            "dims": dims,
        },
        "bodyChunks": {
            "type": "nested",
            "properties": {
                "passage": {
                    "type": "text",
                    "index": False,
                },
                "predictedValue": {
                    "type": "dense_vector",
                    "dims": dims,
                },
            },
        },
    }


def _load_object(value: Union[str, bytes, Mapping[str, Any]], what: str) -> Dict[str, Any]:
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise MappingParseError(f"{what} is not valid JSON: {e}") from e

    if not isinstance(value, Mapping):
        raise MappingParseError(f"{what} must be a JSON object, got {type(value).__name__}")

    return dict(value)


def merge_mapping(
    source_mapping: Union[str, Mapping[str, Any]],
    additional_fields: Mapping[str, SchemaFragment],
) -> Dict[str, Any]:
    """Merge a source index mapping with additional field mappings.

    The source is the payload of ``GET /<index>/_mapping``; the first index
    entry in it is used. Additional fields replace source fields of the same
    name, every other source field passes through unchanged.

    Args:
        source_mapping: Source mapping payload, parsed or as JSON text
        additional_fields: Field name to schema fragment (dict or JSON text)

    Returns:
        {"mappings": {"properties": {...}}} ready for index creation

    Raises:
        MappingParseError: If the source has no mappings.properties or a
            fragment is not a JSON object
    """
    source = _load_object(source_mapping, "Source mapping")
    if not source:
        raise MappingParseError("Source mapping contains no index")

    index_mapping = next(iter(source.values()))
    if not isinstance(index_mapping, Mapping):
        raise MappingParseError("Source mapping index entry is not an object")

    mappings = index_mapping.get("mappings")
    source_properties = mappings.get("properties") if isinstance(mappings, Mapping) else None
    if not isinstance(source_properties, Mapping):
        raise MappingParseError("Source mapping has no 'mappings.properties'")

    properties = dict(source_properties)
    for field_name, fragment in additional_fields.items():
        properties[field_name] = _load_object(fragment, f"Schema for field '{field_name}'")

    return {"mappings": {"properties": properties}}
