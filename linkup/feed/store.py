"""Client-side feed state: fetch, mutate and reconcile a list of posts.

A :class:`FeedStore` owns one view's copy of the feed. Likes and joins are
applied locally straight away and queued as pending mutations; :meth:`flush`
sends them to the backend and the next :meth:`fetch` replaces every local
value with the server's (server wins).
"""
from __future__ import annotations

import logging
from dataclasses import replace

from ..clients.backend import BackendClient, BackendError
from .mapping import author_ids, map_posts
from .models import Draft, FeedScope, MutationKind, PendingMutation, Post
from .session import AuthSession

logger = logging.getLogger(__name__)


class FeedStore:
    """In-memory feed for one view, backed by a :class:`BackendClient`."""

    def __init__(self, backend: BackendClient, session: AuthSession, scope: FeedScope = FeedScope.ALL) -> None:
        self.backend = backend
        self.session = session
        self.scope = scope
        self.posts: list[Post] = []
        self.loading = False
        self.pending: list[PendingMutation] = []

    def _index(self, post_id: str) -> int | None:
        for index, post in enumerate(self.posts):
            if post.id == post_id:
                return index
        return None

    def get(self, post_id: str) -> Post | None:
        index = self._index(post_id)
        return self.posts[index] if index is not None else None

    async def fetch(self, scope: FeedScope | None = None) -> list[Post]:
        """Reload the list from the backend.

        Failures empty the list and are logged, never raised. Overlapping
        calls are not sequenced; whichever resolves last wins.
        """

        if scope is not None:
            self.scope = scope
        creator_id = self.session.user_id if self.scope is FeedScope.MINE else None

        self.loading = True
        try:
            await self.flush()
            rows = await self.backend.query_activities(creator_id=creator_id, token=self.session.token)
            profiles = await self.backend.fetch_profiles(author_ids(rows))
            self.posts = map_posts(rows, profiles)
        except BackendError:
            logger.exception("Error fetching posts")
            self.posts = []
        finally:
            self.loading = False
        return self.posts

    async def create(self, draft: Draft) -> bool:
        """Publish ``draft`` as the session user, then refetch the current scope."""

        if self.session.user is None:
            logger.warning("Refusing to create a post without a signed-in user")
            return False
        try:
            await self.backend.insert_activity(draft.to_row(), token=self.session.token)
        except BackendError:
            logger.exception("Failed to add post")
            return False

        await self.fetch(self.scope)
        return True

    async def delete(self, post_id: str) -> bool:
        """Delete a post on the backend and drop it locally once confirmed."""

        try:
            await self.backend.delete_activity(post_id, token=self.session.token)
        except BackendError:
            logger.exception("Failed to delete post %s", post_id)
            return False

        self.posts = [post for post in self.posts if post.id != post_id]
        self.pending = [mutation for mutation in self.pending if mutation.post_id != post_id]
        return True

    def toggle_like(self, post_id: str) -> Post | None:
        """Flip the like on ``post_id`` locally and queue it for the backend."""

        index = self._index(post_id)
        if index is None:
            return None

        post = self.posts[index]
        liked = not post.liked_by_current_user
        delta = 1 if liked else -1
        updated = replace(post, liked_by_current_user=liked, like_count=max(post.like_count + delta, 0))
        self.posts[index] = updated

        for position, mutation in enumerate(self.pending):
            if mutation.kind is MutationKind.LIKE and mutation.post_id == post_id:
                # A queued like for the same post is undone by this toggle.
                del self.pending[position]
                break
        else:
            self.pending.append(PendingMutation(kind=MutationKind.LIKE, post_id=post_id, liked=liked))
        return updated

    def join(self, post_id: str, user_id: str) -> bool:
        """Claim a slot for the signed-in user if one is free; return whether it was taken.

        Capacity counts anonymous joins too, so a post whose ``joined`` counter
        already reached the cap is full even with fewer listed participants.
        """

        if self.session.user is None or user_id != self.session.user_id:
            return False
        index = self._index(post_id)
        if index is None:
            return False

        post = self.posts[index]
        if post.max_participants is None or post.is_full or user_id in post.participants:
            return False

        self.posts[index] = replace(
            post,
            participants=post.participants + (user_id,),
            joined_count=post.slots_taken + 1,
        )
        self.pending.append(PendingMutation(kind=MutationKind.JOIN, post_id=post_id, user_id=user_id))
        return True

    async def flush(self) -> int:
        """Send queued mutations in order; return how many the backend accepted.

        Every mutation leaves the queue whether or not it succeeds. Rejected ones
        are corrected by the next fetch.
        """

        accepted = 0
        while self.pending:
            mutation = self.pending.pop(0)
            try:
                if mutation.kind is MutationKind.LIKE:
                    await self.backend.set_like(mutation.post_id, bool(mutation.liked), token=self.session.token)
                else:
                    await self.backend.join_activity(mutation.post_id, token=self.session.token)
            except BackendError as exc:
                logger.warning("Dropping %s for post %s: %s", mutation.kind.value, mutation.post_id, exc)
                continue
            accepted += 1
        return accepted


__all__ = ["FeedStore"]
