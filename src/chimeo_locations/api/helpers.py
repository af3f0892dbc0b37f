"""
Helper functions for Firestore REST documents.

Firestore's REST API wraps every field in a typed value object, e.g.
{"stringValue": "Denton"} or {"mapValue": {"fields": {...}}}. These helpers
convert between that representation and plain Python values.
"""

from datetime import datetime
from typing import Dict, Any, List

from ..core.date_utils import DateUtils


def encode_value(value: Any) -> Dict[str, Any]:
    """
    Encode a Python value as a Firestore typed value.

    Args:
        value: None, bool, int, float, str, datetime, dict or list

    Returns:
        Typed value object

    Raises:
        TypeError: If the value type is not supported
    """
    # bool must be checked before int
    if value is None:
        return {"nullValue": "NULL_VALUE"}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        utc = DateUtils.to_utc(value)
        return {"timestampValue": utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Unsupported Firestore value type: {type(value).__name__}")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Encode a dict of plain values as a Firestore 'fields' object."""
    return {str(key): encode_value(value) for key, value in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """
    Decode a Firestore typed value to a plain Python value.

    Timestamps become timezone-aware UTC datetimes, geo points become
    {'latitude', 'longitude'} dicts, references stay as resource names.

    Raises:
        ValueError: If the value type is unknown
    """
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return DateUtils.parse_timestamp(value["timestampValue"])
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "geoPointValue" in value:
        point = value["geoPointValue"]
        return {
            "latitude": float(point.get("latitude", 0.0)),
            "longitude": float(point.get("longitude", 0.0)),
        }
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return value["bytesValue"]
    raise ValueError(f"Unknown Firestore value type: {sorted(value.keys())}")


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Decode a Firestore 'fields' object to a plain dict."""
    return {key: decode_value(value) for key, value in fields.items()}


def document_id(document_name: str) -> str:
    """
    Extract the document ID from a full resource name.

    'projects/p/databases/(default)/documents/organizations/abc' -> 'abc'
    """
    if not document_name:
        raise ValueError("Empty document name")
    return document_name.rstrip("/").rsplit("/", 1)[-1]


def build_location_update(
    document_name: str,
    location_fields: Dict[str, Any],
    timestamp_field: str = "updatedAt"
) -> Dict[str, Any]:
    """
    Build a commit request that replaces the 'location' map of an existing
    document and stamps it with the server time.

    Args:
        document_name: Full resource name of the document
        location_fields: Plain location dict
        timestamp_field: Field set to the server request time

    Returns:
        Request body for the documents:commit endpoint
    """
    writes: List[Dict[str, Any]] = [{
        "update": {
            "name": document_name,
            "fields": {"location": encode_value(location_fields)},
        },
        "updateMask": {"fieldPaths": ["location"]},
        "updateTransforms": [{
            "fieldPath": timestamp_field,
            "setToServerValue": "REQUEST_TIME",
        }],
        "currentDocument": {"exists": True},
    }]
    return {"writes": writes}
