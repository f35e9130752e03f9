import hashlib
import mmh3
import jsonpickle
from datetime import datetime, timezone
from typing import Any, Dict, Union


def now() -> str:
    return datetime.now(timezone.utc).isoformat()


def sort_dict_keys(d):
    """Recursively sort dictionary keys, descending into lists."""
    if isinstance(d, dict):
        return {key: sort_dict_keys(value) for key, value in sorted(d.items())}
    elif isinstance(d, list):
        return [sort_dict_keys(item) for item in d]
    return d


def canonicalize_dict(data: Dict[str, Any]) -> str:
    """
    Returns a canonical JSON representation of a dictionary.

    Keys are sorted recursively, so two dictionaries holding the same content
    always produce the same string regardless of insertion order.
    """
    return jsonpickle.dumps(sort_dict_keys(data), unpicklable=False)


def compute_hash(data: Union[Dict[str, Any], str]) -> str:
    """Compute a short, stable content hash (murmur3 then sha256)."""
    if isinstance(data, dict):
        _data = canonicalize_dict(data)
    elif isinstance(data, str):
        _data = data
    else:
        raise ValueError(f"Hash of {type(data)} is not supported.")
    murmur_str = str(mmh3.hash128(_data))
    full_hash = hashlib.sha256(murmur_str.encode("utf-8")).hexdigest()
    # First 16 characters keep annotations readable
    return full_hash[:16]
