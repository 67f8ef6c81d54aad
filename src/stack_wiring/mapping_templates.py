"""
AppSync VTL mapping templates for the user object resolvers

The item key is always derived from the caller's `sub` claim, never from
client arguments, so a caller can only read or write its own partition.
``get_user_info_request`` and ``create_initial_user_request`` render in
Python the request each template produces, for testing without AppSync.
"""
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from boto3.dynamodb.types import TypeSerializer

TEMPLATE_VERSION = "2017-02-28"
USER_PARTITION_PREFIX = "userId#"
USER_OBJECT_SORT_KEY = "type#userObject"

GET_USER_INFO_REQUEST = """{
  "version" : "2017-02-28",
  "operation" : "GetItem",
  "key" : {
    "pk" : $util.dynamodb.toDynamoDBJson("userId#$ctx.identity.sub"),
    "sk" : $util.dynamodb.toDynamoDBJson("type#userObject")
  }
}"""

CREATE_INITIAL_USER_REQUEST = """{
  "version" : "2017-02-28",
  "operation" : "PutItem",
  "key" : {
    "pk" : $util.dynamodb.toDynamoDBJson("userId#$ctx.identity.sub"),
    "sk" : $util.dynamodb.toDynamoDBJson("type#userObject")
  },
  "attributeValues" : {
    "user" : {
      "M" : $util.dynamodb.toMapValuesJson($ctx.args)
    }
  }
}"""

RESULT_RESPONSE = "$utils.toJson($ctx.result)"

_serializer = TypeSerializer()


def _caller_subject(identity: Optional[Mapping[str, Any]]) -> str:
    subject = (identity or {}).get("sub")
    if not subject:
        raise PermissionError("Caller identity carries no sub claim")
    return subject


def _to_dynamodb(value: Any) -> Dict[str, Any]:
    # TypeSerializer rejects floats
    if isinstance(value, float):
        value = Decimal(str(value))
    elif isinstance(value, dict):
        return {"M": {k: _to_dynamodb(v) for k, v in value.items()}}
    elif isinstance(value, list):
        return {"L": [_to_dynamodb(v) for v in value]}
    return _serializer.serialize(value)


def user_object_key(subject: str) -> Dict[str, str]:
    """Primary key of a caller's user object"""
    return {"pk": f"{USER_PARTITION_PREFIX}{subject}", "sk": USER_OBJECT_SORT_KEY}


def get_user_info_request(
    identity: Mapping[str, Any],
    arguments: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Request produced by GET_USER_INFO_REQUEST; ``arguments`` never reach the key"""
    key = user_object_key(_caller_subject(identity))
    return {
        "version": TEMPLATE_VERSION,
        "operation": "GetItem",
        "key": {name: _to_dynamodb(value) for name, value in key.items()},
    }


def create_initial_user_request(
    identity: Mapping[str, Any],
    arguments: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Request produced by CREATE_INITIAL_USER_REQUEST"""
    key = user_object_key(_caller_subject(identity))
    user = {name: _to_dynamodb(value) for name, value in (arguments or {}).items()}
    return {
        "version": TEMPLATE_VERSION,
        "operation": "PutItem",
        "key": {name: _to_dynamodb(value) for name, value in key.items()},
        "attributeValues": {"user": {"M": user}},
    }
