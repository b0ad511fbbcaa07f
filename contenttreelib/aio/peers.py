"""
Language peers of a course.

A translated course is stored as a peer: a second course node that
carries the master course's ``_courseId`` and its own ``_lang``, with a
full copy of the master content underneath. Nodes are matched across
languages by ``_friendlyId``. This module assigns friendly ids, creates
peers and checks that peers still mirror their master.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from ..config import (
    ARTICLE,
    BLOCK,
    COMPONENT,
    CONFIG,
    CONTENT_OBJECT_SCHEMA,
    COURSE,
    FRIENDLY_ID_PREFIXES,
    MutationOptions,
)
from ..errors import (
    FriendlyIdDuplicateError,
    FriendlyIdMissingError,
    NotFoundError,
    PeerStructureError,
)
from .core import ContentNode
from .engine import ContentTreeEngine


logger = logging.getLogger(__name__)

# Order in which friendly ids are populated, by schema class
FRIENDLY_ID_KINDS = (CONTENT_OBJECT_SCHEMA, ARTICLE, BLOCK, COMPONENT)

FRIENDLY_ID_START = 5
FRIENDLY_ID_STEP = 5


def has_friendly_id(node: ContentNode) -> bool:
    """Whether a node carries a usable friendly id (blank counts as missing)."""
    friendly_id = node.friendly_id
    return friendly_id is not None and str(friendly_id).strip() != ''


def get_missing_friendly_ids(content: Sequence[ContentNode]) -> List[ContentNode]:
    return [n for n in content if not has_friendly_id(n)]


def get_duplicate_friendly_ids(content: Sequence[ContentNode]) -> List[str]:
    """Friendly ids used by more than one node, in order of first appearance."""
    seen = set()
    duplicates: List[str] = []
    for node in content:
        if not has_friendly_id(node):
            continue
        if node.friendly_id in seen and node.friendly_id not in duplicates:
            duplicates.append(node.friendly_id)
        seen.add(node.friendly_id)
    return duplicates


class PeerStructureService:
    """
    Manages language peers of courses.

    Example:
        peers = PeerStructureService(engine)
        await peers.add_language('user-1', course.id, 'fr')
        await peers.check_peer_structure(course.id)
    """

    def __init__(self, engine: ContentTreeEngine):
        self.engine = engine
        self.store = engine.store

    async def get_content_models(self, course_id: str) -> List[ContentNode]:
        """All nodes of a course and its peers, config excluded."""
        return await self.store.find({'$and': [
            {'$or': [{'_courseId': course_id}, {'_id': course_id}]},
            {'_type': {'$ne': CONFIG}},
        ]})

    async def get_languages_for_course(self, course_id: str) -> List[Optional[str]]:
        """Distinct ``_lang`` values in a course, in order of first appearance."""
        languages: List[Optional[str]] = []
        for node in await self.get_content_models(course_id):
            if node.lang not in languages:
                languages.append(node.lang)
        return languages

    async def populate_friendly_ids(self, kind: str, content: Sequence[ContentNode]) -> List[ContentNode]:
        """
        Assign friendly ids to the nodes of one kind that lack them.

        Ids are the kind's prefix plus a two-digit number starting at 05
        and stepping by 5, skipping numbers already taken.

        Args:
            kind: 'course', 'contentobject', 'article', 'block' or 'component'
            content: Nodes of that kind

        Returns:
            The nodes that were updated
        """
        prefix = FRIENDLY_ID_PREFIXES[kind]
        used = {n.friendly_id for n in content if has_friendly_id(n)}
        digit = FRIENDLY_ID_START
        updated = []
        for node in content:
            if has_friendly_id(node):
                continue
            proposal = f"{prefix}{digit:02d}"
            while proposal in used:
                digit += FRIENDLY_ID_STEP
                proposal = f"{prefix}{digit:02d}"
            used.add(proposal)
            updated.append(await self.store.update(node.id, {'_friendlyId': proposal}))
        if updated:
            logger.debug("Assigned %d '%s' friendly ids", len(updated), kind)
        return updated

    async def add_language(self, user_id: str, course_id: str, lang: str) -> ContentNode:
        """
        Create a peer of a course in another language.

        Friendly ids are filled in on the master content first so that
        every copy can be matched back to its original.

        Returns:
            The new peer course node

        Raises:
            NotFoundError: If the course does not exist
            FriendlyIdDuplicateError: If the master content reuses a friendly id
        """
        logger.info("Edit: add_language course=%s lang=%s", course_id, lang)
        content = await self.get_content_models(course_id)
        course = next((n for n in content if n.id == course_id), None)
        if course is None:
            raise NotFoundError(data={'id': course_id})
        master_content = [n for n in content if n.lang == course.lang]

        duplicates = get_duplicate_friendly_ids(master_content)
        if duplicates:
            logger.warning("Edit FAIL: add_language duplicate friendly ids %s", duplicates)
            raise FriendlyIdDuplicateError(data={'list': duplicates})

        await self.populate_friendly_ids(COURSE, [course])
        await asyncio.gather(*(
            self.populate_friendly_ids(kind, [n for n in master_content if n.schema_class == kind])
            for kind in FRIENDLY_ID_KINDS
        ))

        master = await self.store.find_one({'_id': course_id})
        peer_data = master.to_document()
        for key in ('_id', '_trackingId'):
            peer_data.pop(key, None)
        peer_data.update({'_courseId': course_id, 'createdBy': user_id, '_lang': lang})
        peer = await self.engine.insert(peer_data, MutationOptions(schema_name=COURSE))

        global_data = {'_courseId': course_id, '_lang': lang}
        for child in await self.engine.navigator.get_children(master):
            await self.engine.clone(user_id, child.id, peer.id, None, global_data, self.engine.config.default_lang)

        logger.info("Edit OK: add_language course=%s lang=%s peer=%s", course_id, lang, peer.id)
        return peer

    async def check_peer_structures(self) -> None:
        """Check every master course that has peers."""
        courses = await self.store.find({'_type': COURSE})
        masters = [c for c in courses if c.id == c.course_id]
        await asyncio.gather(*(self.check_peer_structure(c.id) for c in masters))

    async def check_peer_structure(self, master_course_id: str) -> None:
        """
        Verify that every language peer mirrors the master content.

        Raises:
            FriendlyIdMissingError: If master content lacks friendly ids
            FriendlyIdDuplicateError: If master friendly ids are not unique
            PeerStructureError: If a language lacks a peer for some master
                node (peerless) or has nodes with no master (extraneous)
        """
        content = await self.get_content_models(master_course_id)
        languages = await self.get_languages_for_course(master_course_id)
        if len(languages) <= 1:
            return

        master = next(
            (n for n in content if n.type == COURSE and n.id == n.course_id), None
        )
        if master is None:
            raise NotFoundError(data={'id': master_course_id})
        master_content = [n for n in content if n.lang == master.lang]

        missing = get_missing_friendly_ids(master_content)
        if missing:
            raise FriendlyIdMissingError(data={'list': [n.display_name() for n in missing]})

        duplicates = get_duplicate_friendly_ids(master_content)
        if duplicates:
            raise FriendlyIdDuplicateError(data={'list': duplicates})

        groups: Dict[Optional[str], List[ContentNode]] = {lang: [] for lang in languages}
        for node in content:
            groups[node.lang].append(node)

        peerless: Dict[Optional[str], List[str]] = {}
        extraneous: Dict[Optional[str], List[str]] = {}
        for lang, nodes in groups.items():
            by_friendly_id = {n.friendly_id: n for n in nodes if has_friendly_id(n)}
            matched = set()
            for item in master_content:
                peer = by_friendly_id.get(item.friendly_id)
                if peer is None:
                    peerless.setdefault(lang, []).append(item.friendly_id)
                else:
                    matched.add(peer.id)
            unmatched = [n.id for n in nodes if n.id not in matched]
            if unmatched:
                extraneous[lang] = unmatched

        if peerless or extraneous:
            raise PeerStructureError(data={
                'courseId': master_course_id,
                'friendlyId': master.friendly_id,
                'courseTitle': master.extras.get('title') or master.extras.get('displayTitle'),
                'peerless': peerless,
                'extraneous': extraneous,
            })
