"""Persistence for the two collections the chat keeps in MongoDB.

``messages`` holds every accepted chat message in insertion order.
``users`` holds one document per username; a present ``socketId`` means the
user is online.
"""
from typing import List, Optional

from pymongo import ASCENDING, ReturnDocument

from .models import Message, User, utcnow


class ChatStore:
    def __init__(self, db):
        self.db = db
        self.messages = db['messages']
        self.users = db['users']

    async def ensure_indexes(self):
        await self.users.create_index([('username', ASCENDING)], unique=True)

    async def list_messages(self) -> List[Message]:
        docs = await self.messages.find({}).to_list(length=None)
        return [Message.model_validate(doc) for doc in docs]

    async def insert_message(self, message: Message) -> Message:
        result = await self.messages.insert_one(message.to_document())
        message.id = str(result.inserted_id)
        return message

    async def clear_messages(self) -> int:
        result = await self.messages.delete_many({})
        return result.deleted_count

    async def upsert_user(self, username: str, socket_id: str) -> User:
        # atomic on the unique username index, so concurrent registrations
        # of one name never create two documents
        doc = await self.users.find_one_and_update(
            {'username': username},
            {'$set': {'socketId': socket_id}, '$setOnInsert': {'joinedAt': utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return User.model_validate(doc)

    async def release_socket(self, socket_id: str) -> Optional[User]:
        """Mark the user bound to ``socket_id`` offline; returns it as it was."""
        doc = await self.users.find_one_and_update(
            {'socketId': socket_id},
            {'$unset': {'socketId': ''}},
        )
        return User.model_validate(doc) if doc else None

    async def online_usernames(self) -> List[str]:
        cursor = self.users.find({'socketId': {'$exists': True}}, {'username': 1, '_id': 0})
        return [doc['username'] for doc in await cursor.to_list(length=None)]

    async def reset_presence(self) -> int:
        result = await self.users.update_many(
            {'socketId': {'$exists': True}},
            {'$unset': {'socketId': ''}},
        )
        return result.modified_count
