"""
DynamoDB utility functions for data access.
"""
from typing import Dict, List, Optional, Any
import boto3
from boto3.dynamodb.conditions import Key, ConditionBase

# Singleton instance
_dynamo_instance = None

def get_dynamo(table_name: str) -> 'DynamoDBClient':
    """
    Get or create singleton DynamoDB client instance.

    This is the ONLY way to access DynamoDB in this project. Never instantiate
    DynamoDBClient directly outside of tests. The table name comes from
    TrackerConfig, which has already failed at startup if it was missing.

    Example:
        # Correct usage
        config = TrackerConfig.from_env()
        dynamo = get_dynamo(config.table_name)
        items = dynamo.query_items("PK", create_pk(config.tracker_id))

    Args:
        table_name: DynamoDB table holding the tracker records

    Returns:
        DynamoDBClient: Singleton instance of DynamoDB client
    """
    global _dynamo_instance
    if _dynamo_instance is None or _dynamo_instance.table_name != table_name:
        _dynamo_instance = DynamoDBClient(table_name)
    return _dynamo_instance

class DynamoDBClient:
    """Client for interacting with DynamoDB table."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

    def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Put a single item into the table.

        Args:
            item: Dictionary containing item attributes

        Returns:
            Response from DynamoDB
        """
        return self.table.put_item(Item=item)

    def query_items(
        self,
        partition_key: str,
        partition_value: str,
        sort_key_condition: Optional[ConditionBase] = None,
        filter_condition: Optional[ConditionBase] = None
    ) -> List[Dict[str, Any]]:
        """
        Query all items for a partition, following pagination.

        Args:
            partition_key: Name of partition key
            partition_value: Value of partition key
            sort_key_condition: Optional sort key condition
            filter_condition: Optional attribute filter applied by DynamoDB

        Returns:
            List of matching items across all result pages
        """
        key_condition = Key(partition_key).eq(partition_value)
        if sort_key_condition:
            key_condition = key_condition & sort_key_condition

        kwargs = {"KeyConditionExpression": key_condition}
        if filter_condition is not None:
            kwargs["FilterExpression"] = filter_condition

        items = []
        while True:
            response = self.table.query(**kwargs)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def update_item(
        self,
        key: Dict[str, str],
        update_expression: str,
        expression_values: Dict[str, Any],
        expression_names: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Update an item in the table.

        Args:
            key: Dictionary containing partition key and sort key
            update_expression: Update expression
            expression_values: Expression attribute values
            expression_names: Expression attribute names for reserved or
                non-identifier attribute names

        Returns:
            Response from DynamoDB
        """
        kwargs = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_values,
            "ReturnValues": "ALL_NEW"
        }
        if expression_names:
            kwargs["ExpressionAttributeNames"] = expression_names
        return self.table.update_item(**kwargs)

def create_pk(tracker_id: str) -> str:
    """Create partition key from tracker ID."""
    return f"TRACKER#{tracker_id}"

def create_record_sk(record_id: str) -> str:
    """Create sort key for tracker records."""
    return f"RECORD#{record_id}"
