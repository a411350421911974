"""
DynamoDB single-table adapter.

This module wraps a boto3 Table resource with the handful of key-based
operations the auth service needs:
- get / put / update / delete on a (PK, SK) pair
- query a partition (base table or GSI1), optionally by sort key prefix

All "exactly once" guarantees (email uniqueness, single-use codes) come from
conditional writes. A failed condition surfaces as ConditionFailedError so
callers can map it to a domain error; any other store failure propagates.

Follows steering rules:
- Explicit over implicit
- No global mutable state
- No retries beyond the SDK's own
"""

from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError


# Supported condition expressions
ITEM_EXISTS = 'attribute_exists(PK)'
ITEM_ABSENT = 'attribute_not_exists(PK)'

# Partition/sort key attribute names per index (None = base table)
INDEX_KEYS = {
    None: ('PK', 'SK'),
    'GSI1': ('GSI1PK', 'GSI1SK'),
}


class ConditionFailedError(Exception):
    """Raised when a conditional write or delete does not hold."""


class DynamoStore:
    """
    Key-value access to the single auth table.

    Usage:
        store = DynamoStore('todo-auth-table')
        store.put({'PK': 'USER#a@example.com', 'SK': 'PROFILE'}, condition=ITEM_ABSENT)
        item = store.get('USER#a@example.com', 'PROFILE')
    """

    def __init__(self, table_name: str, table: Any = None):
        """
        Initialize the store.

        Args:
            table_name: Name of the DynamoDB table
            table: Pre-built Table resource (optional, for reuse across services)
        """
        self.table_name = table_name
        self.table = table if table is not None else boto3.resource('dynamodb').Table(table_name)

    def get(self, pk: str, sk: str) -> Optional[Dict[str, Any]]:
        response = self.table.get_item(Key={'PK': pk, 'SK': sk})
        return response.get('Item')

    def put(self, item: Dict[str, Any], condition: Optional[str] = None) -> None:
        """
        Write a full item.

        Args:
            item: Item including PK and SK
            condition: ITEM_ABSENT to create only, ITEM_EXISTS to overwrite only

        Raises:
            ConditionFailedError: If the condition does not hold
        """
        params: Dict[str, Any] = {'Item': item}
        if condition:
            params['ConditionExpression'] = condition

        self._call(self.table.put_item, **params)

    def update(
        self,
        pk: str,
        sk: str,
        values: Dict[str, Any],
        condition: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Set attributes on an existing item.

        Builds a `SET #a = :a, ...` expression so reserved words such as
        `status` and `name` can be updated safely.

        Args:
            pk: Partition key value
            sk: Sort key value
            values: Attribute names mapped to their new values
            condition: Optional condition expression

        Returns:
            All attributes of the item after the update

        Raises:
            ConditionFailedError: If the condition does not hold
        """
        if not values:
            raise ValueError('At least one attribute is required for an update')

        assignments = []
        names = {}
        attribute_values = {}
        for index, (name, value) in enumerate(values.items()):
            assignments.append(f'#f{index} = :v{index}')
            names[f'#f{index}'] = name
            attribute_values[f':v{index}'] = value

        params: Dict[str, Any] = {
            'Key': {'PK': pk, 'SK': sk},
            'UpdateExpression': 'SET ' + ', '.join(assignments),
            'ExpressionAttributeNames': names,
            'ExpressionAttributeValues': attribute_values,
            'ReturnValues': 'ALL_NEW'
        }
        if condition:
            params['ConditionExpression'] = condition

        response = self._call(self.table.update_item, **params)
        return response.get('Attributes', {})

    def delete(self, pk: str, sk: str, condition: Optional[str] = None) -> None:
        params: Dict[str, Any] = {'Key': {'PK': pk, 'SK': sk}}
        if condition:
            params['ConditionExpression'] = condition

        self._call(self.table.delete_item, **params)

    def query(
        self,
        pk: str,
        sk_prefix: Optional[str] = None,
        index_name: Optional[str] = None,
        limit: Optional[int] = None,
        newest_first: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Query one partition of the table or of an index.

        Args:
            pk: Partition key value
            sk_prefix: Only return items whose sort key begins with this prefix
            index_name: Secondary index to query (None for the base table)
            limit: Maximum number of items to evaluate
            newest_first: Descending sort key order (ULID sort keys sort by time)

        Returns:
            Matching items, in sort key order
        """
        if index_name not in INDEX_KEYS:
            raise ValueError(f"Unknown index '{index_name}'")
        pk_name, sk_name = INDEX_KEYS[index_name]

        key_condition = Key(pk_name).eq(pk)
        if sk_prefix:
            key_condition = key_condition & Key(sk_name).begins_with(sk_prefix)

        params: Dict[str, Any] = {
            'KeyConditionExpression': key_condition,
            'ScanIndexForward': not newest_first
        }
        if index_name:
            params['IndexName'] = index_name
        if limit:
            params['Limit'] = limit

        response = self.table.query(**params)
        return response.get('Items', [])

    def _call(self, operation, **params: Any) -> Dict[str, Any]:
        try:
            return operation(**params)
        except ClientError as error:
            if error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                raise ConditionFailedError(params.get('ConditionExpression', '')) from error
            raise
