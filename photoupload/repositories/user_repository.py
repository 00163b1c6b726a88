"""
User repositories.
DynamoDB-backed accounts keyed by email, plus an in-memory variant.
"""
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional
import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from photoupload.core import config
from photoupload.core.exceptions import PersistenceException, ValidationException
from photoupload.models.user import User

USER_ID_INDEX_NAME = "UserIdIndex"


class UserRepository(ABC):
    """Repository interface for accounts."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def create(self, user: User) -> None:
        """Create a user; ValidationException if the email is taken."""
        pass


class DynamoUserRepository(UserRepository):
    """Repository for the users DynamoDB table."""

    def __init__(self):
        self.dynamodb = boto3.resource('dynamodb', region_name=config.settings.aws_region)
        self.table = self.dynamodb.Table(config.settings.users_table_name)

    def find_by_email(self, email: str) -> Optional[User]:
        try:
            response = self.table.get_item(Key={'email': email})
            if 'Item' not in response:
                return None
            return self._item_to_user(response['Item'])
        except ClientError as e:
            raise PersistenceException(f"Failed to get user: {str(e)}") from e

    def find_by_id(self, user_id: str) -> Optional[User]:
        try:
            response = self.table.query(
                IndexName=USER_ID_INDEX_NAME,
                KeyConditionExpression=Key('user_id').eq(user_id)
            )
            items = response.get('Items', [])
            return self._item_to_user(items[0]) if items else None
        except ClientError as e:
            raise PersistenceException(f"Failed to query user: {str(e)}") from e

    def create(self, user: User) -> None:
        try:
            self.table.put_item(
                Item={
                    'email': user.email,
                    'user_id': user.user_id,
                    'password_hash': user.password_hash,
                    'created_at': user.created_at.isoformat()
                },
                ConditionExpression=Attr('email').not_exists()
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ValidationException(f"User with email already exists: {user.email}") from e
            raise PersistenceException(f"Failed to create user: {str(e)}") from e

    def _item_to_user(self, item: dict) -> User:
        return User(
            user_id=item['user_id'],
            email=item['email'],
            password_hash=item['password_hash'],
            created_at=datetime.fromisoformat(item['created_at'])
        )


class InMemoryUserRepository(UserRepository):
    """Thread-safe in-memory accounts, keyed by email."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return self._users.get(email)

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self._users.values() if u.user_id == user_id), None)

    def create(self, user: User) -> None:
        with self._lock:
            if user.email in self._users:
                raise ValidationException(f"User with email already exists: {user.email}")
            self._users[user.email] = user
