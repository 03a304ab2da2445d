"""
Record store service.

The calculator talks to the store only through ``RecordStore``: query every
record, query by property equality, create a record, and partially update a
record. ``DynamoRecordStore`` keeps the records of one tracker in a DynamoDB
partition.

Typical usage:
    store = DynamoRecordStore(get_dynamo(config.table_name), config.tracker_id)
    records = store.query_all(config.properties.date)
    store.update_record(records[0].id, {"Cycle days": PropertyValue.number(28)})
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

import botocore
from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr, Key
from pydantic import ValidationError

from src.models.record import CreatorType, PropertyType, PropertyValue, Record, Scalar
from src.services.exceptions import RecordStoreError
from src.utils.dynamo import DynamoDBClient, create_pk, create_record_sk

logger = Logger()

RECORD_SK_PREFIX = "RECORD#"


class RecordStore(ABC):
    """Interface of the structured record store."""

    @abstractmethod
    def query_all(self, sort_property: str) -> List[Record]:
        """Return every record, ascending by the given date property."""

    @abstractmethod
    def query_filtered(self, filters: Mapping[str, Scalar]) -> List[Record]:
        """Return records whose property values equal all of ``filters``."""

    @abstractmethod
    def create_record(self, properties: Mapping[str, PropertyValue]) -> Record:
        """Create a record authored by automation."""

    @abstractmethod
    def update_record(self, record_id: str, properties: Mapping[str, PropertyValue]) -> None:
        """Set the given properties; others are left unchanged."""


def sort_records(records: List[Record], sort_property: str) -> List[Record]:
    """
    Sort records ascending by a date property.

    Records without the property go last; ties keep creation order.
    """
    def sort_key(record: Record):
        prop = record.properties.get(sort_property)
        value = prop.value if prop is not None and prop.type == PropertyType.DATE else None
        return (value is None, str(value or ""), record.created_time, record.id)

    return sorted(records, key=sort_key)


def _to_dynamo(value: Optional[Scalar]) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _from_dynamo(value: Any) -> Optional[Scalar]:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


class DynamoRecordStore(RecordStore):
    """Record store backed by one DynamoDB partition per tracker."""

    def __init__(
        self,
        dynamo: DynamoDBClient,
        tracker_id: str,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the store.

        Args:
            dynamo: DynamoDB client
            tracker_id: Tracker whose records this store reads and writes
            clock: Returns the current time; defaults to UTC now
        """
        self.dynamo = dynamo
        self.tracker_id = tracker_id
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _key(self, record_id: str) -> Dict[str, str]:
        return {"PK": create_pk(self.tracker_id), "SK": create_record_sk(record_id)}

    def _to_record(self, item: Dict[str, Any]) -> Record:
        try:
            properties = {
                name: PropertyValue(type=prop["type"], value=_from_dynamo(prop.get("value")))
                for name, prop in (item.get("properties") or {}).items()
            }
            return Record(
                id=item["record_id"],
                properties=properties,
                created_by_type=item.get("created_by_type", CreatorType.PERSON.value),
                created_time=item["created_time"],
                last_edited_time=item.get("last_edited_time", item["created_time"])
            )
        except (KeyError, TypeError, ValidationError) as e:
            logger.error("Malformed record item", extra={
                "sk": item.get("SK"),
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            raise RecordStoreError(f"Malformed record item {item.get('SK')}: {e}") from e

    def _query(self, filter_condition=None) -> List[Record]:
        try:
            items = self.dynamo.query_items(
                partition_key="PK",
                partition_value=create_pk(self.tracker_id),
                sort_key_condition=Key("SK").begins_with(RECORD_SK_PREFIX),
                filter_condition=filter_condition
            )
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            logger.error("DynamoDB query failed", extra={
                "tracker_id": self.tracker_id,
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            raise RecordStoreError(f"Failed to query records: {e}") from e
        return [self._to_record(item) for item in items]

    def query_all(self, sort_property: str) -> List[Record]:
        records = sort_records(self._query(), sort_property)
        logger.debug("Fetched records", extra={"tracker_id": self.tracker_id, "count": len(records)})
        return records

    def query_filtered(self, filters: Mapping[str, Scalar]) -> List[Record]:
        condition = None
        for name, value in filters.items():
            clause = Attr(f"properties.{name}.value").eq(_to_dynamo(value))
            condition = clause if condition is None else condition & clause
        return self._query(condition)

    def create_record(self, properties: Mapping[str, PropertyValue]) -> Record:
        now = self.clock().isoformat()
        record_id = str(uuid.uuid4())
        item = {
            **self._key(record_id),
            "record_id": record_id,
            "properties": {
                name: {"type": prop.type.value, "value": _to_dynamo(prop.value)}
                for name, prop in properties.items()
            },
            "created_by_type": CreatorType.BOT.value,
            "created_time": now,
            "last_edited_time": now
        }
        try:
            self.dynamo.put_item(item)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            logger.error("DynamoDB put failed", extra={"tracker_id": self.tracker_id, "error": str(e)})
            raise RecordStoreError(f"Failed to create record: {e}") from e

        logger.info("Created record", extra={"record_id": record_id})
        return self._to_record(item)

    def update_record(self, record_id: str, properties: Mapping[str, PropertyValue]) -> None:
        if not properties:
            return

        names = {"#props": "properties", "#edited": "last_edited_time"}
        values = {":edited": self.clock().isoformat()}
        assignments = ["#edited = :edited"]
        for i, (name, prop) in enumerate(properties.items()):
            names[f"#n{i}"] = name
            values[f":v{i}"] = {"type": prop.type.value, "value": _to_dynamo(prop.value)}
            assignments.append(f"#props.#n{i} = :v{i}")

        try:
            self.dynamo.update_item(
                key=self._key(record_id),
                update_expression="SET " + ", ".join(assignments),
                expression_values=values,
                expression_names=names
            )
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            logger.error("DynamoDB update failed", extra={
                "record_id": record_id,
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            raise RecordStoreError(f"Failed to update record {record_id}: {e}") from e
