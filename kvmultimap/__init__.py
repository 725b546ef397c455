"""kvmultimap: set multimaps stored in a key-value store."""

from .codec import Codec, bytes_codec, json_codec, pickle_codec, string_codec
from .collection import KeyedCollectionView, RemoteSet, UnsupportedOperation
from .errors import EncodingError, NoSuchKeyError, StoreError, WrongTypeError
from .executor import CommandExecutor
from .kv.base import KVStore
from .multimap import SetMultimap
from .naming import key_hash, resolve_hash, values_name
from .scripts import Script
from .store import Client, client

__all__ = [
    "Client",
    "Codec",
    "CommandExecutor",
    "EncodingError",
    "KVStore",
    "KeyedCollectionView",
    "NoSuchKeyError",
    "RemoteSet",
    "Script",
    "SetMultimap",
    "StoreError",
    "UnsupportedOperation",
    "WrongTypeError",
    "bytes_codec",
    "client",
    "json_codec",
    "key_hash",
    "pickle_codec",
    "resolve_hash",
    "string_codec",
    "values_name",
]
