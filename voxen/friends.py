"""Friend requests and the accepted-friends list."""

import logging
from typing import Dict, List, Optional

from .error_handler import ErrorBoundary, Notice, ValidationError
from .gateway import Gateway, all_of, any_of, eq, is_in
from .models import Friend, FriendStatus, User, UserProfile, new_id
from .reconcile import EntityList

logger = logging.getLogger("voxen.friends")


class FriendsController:
    def __init__(self, gateway: Gateway, boundary: ErrorBoundary, user: User):
        self.gateway = gateway
        self.boundary = boundary
        self.user = user

        self.friends: EntityList[Friend] = EntityList("friends")
        self.pending: EntityList[Friend] = EntityList("pending_requests")
        self.request_email = ""
        self.sending = False

    async def _with_names(self, rows: List[Friend]) -> List[Friend]:
        """Fill the display fields from the other party's profile"""
        me = self.user.id
        others = {row.other_party(me) for row in rows}
        if not others:
            return rows
        profiles = await self.gateway.user_profiles.list(where=is_in("userId", sorted(others)))
        by_user: Dict[str, UserProfile] = {p.user_id: p for p in profiles}

        named = []
        for row in rows:
            profile = by_user.get(row.other_party(me))
            if profile is None:
                named.append(row)
                continue
            named.append(row.model_copy(update={
                "friend_name": row.friend_name or profile.display_name,
                "friend_avatar": row.friend_avatar or profile.avatar_url,
            }))
        return named

    async def _list_friends(self) -> List[Friend]:
        me = self.user.id
        rows = await self.gateway.friends.list(where=all_of(
            any_of(eq("user_id", me), eq("friend_user_id", me)),
            eq("status", FriendStatus.ACCEPTED.value),
        ))
        return await self._with_names(rows)

    async def _list_pending(self) -> List[Friend]:
        rows = await self.gateway.friends.list(where=all_of(
            eq("friend_user_id", self.user.id),
            eq("status", FriendStatus.PENDING.value),
        ))
        return await self._with_names(rows)

    async def load_friends(self) -> bool:
        ok, _ = await self.boundary.run(
            lambda: self.friends.refresh(self._list_friends), context="Load friends", notify=False
        )
        return ok

    async def load_pending(self) -> bool:
        ok, _ = await self.boundary.run(
            lambda: self.pending.refresh(self._list_pending), context="Load pending requests", notify=False
        )
        return ok

    async def load(self) -> bool:
        friends_ok = await self.load_friends()
        pending_ok = await self.load_pending()
        return friends_ok and pending_ok

    async def _resolve_target(self, email: str) -> str:
        profiles = await self.gateway.user_profiles.list(where=eq("email", email), limit=1)
        if not profiles:
            raise ValidationError("User not found", f"No Voxen user with email {email}")
        target = profiles[0].user_id
        if target == self.user.id:
            raise ValidationError("Invalid request", "You cannot add yourself as a friend")

        existing = await self.gateway.friends.list(where=any_of(
            all_of(eq("user_id", self.user.id), eq("friend_user_id", target)),
            all_of(eq("user_id", target), eq("friend_user_id", self.user.id)),
        ), limit=1)
        if existing:
            if existing[0].status == FriendStatus.ACCEPTED:
                raise ValidationError("Already friends", f"You are already friends with {email}")
            raise ValidationError("Request pending", "A friend request already exists")
        return target

    async def send_request(self, email: Optional[str] = None) -> bool:
        email = (self.request_email if email is None else email).strip().lower()
        if not email:
            return False

        async def create_request() -> Friend:
            target = await self._resolve_target(email)
            return await self.gateway.friends.create(Friend(
                id=new_id("friend"),
                user_id=self.user.id,
                friend_user_id=target,
                status=FriendStatus.PENDING,
            ))

        self.sending = True
        try:
            ok, _ = await self.boundary.run(
                create_request, context=f"Send friend request to {email}",
                failure=Notice("Failed to send friend request"),
            )
        finally:
            self.sending = False

        if not ok:
            return False
        self.request_email = ""
        self.boundary.success("Friend request sent!")
        return True

    async def accept(self, request_id: str) -> bool:
        ok, _ = await self.boundary.run(
            lambda: self.gateway.friends.update(request_id, {"status": FriendStatus.ACCEPTED}),
            context=f"Accept friend request {request_id}",
            failure=Notice("Failed to accept friend request"),
        )
        if not ok:
            return False
        logger.info(f"[FRIENDS] Accepted request {request_id}")
        self.pending.remove(request_id)
        await self.load()
        return True

    async def reject(self, request_id: str) -> bool:
        ok, _ = await self.boundary.run(
            lambda: self.gateway.friends.delete(request_id),
            context=f"Reject friend request {request_id}",
            failure=Notice("Failed to reject friend request"),
        )
        if not ok:
            return False
        logger.info(f"[FRIENDS] Rejected request {request_id}")
        self.pending.remove(request_id)
        await self.load_pending()
        return True

    def filtered(self, query: str = "") -> List[Friend]:
        needle = query.strip().lower()
        if not needle:
            return list(self.friends)
        return [f for f in self.friends if f.friend_name and needle in f.friend_name.lower()]

    def display_target(self, friend: Friend) -> str:
        """The user id a DM with this friend row should open"""
        return friend.other_party(self.user.id)
