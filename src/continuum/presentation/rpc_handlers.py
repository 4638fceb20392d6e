"""Internal JSON RPC route handlers."""

import logging
import re
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from aiohttp import web

from continuum.application.services import ConversationGraph
from continuum.application.use_cases import ChainContextUseCase, TopicContextUseCase
from continuum.domain.entities import (
    Conversation,
    ConversationClosure,
    Event,
    EventType,
    Message,
    MessageRole,
    PresenceState,
    Session,
    Topic,
)
from continuum.domain.exceptions import (
    ActiveConversationConflictError,
    ContinuumError,
    ConversationNotActiveError,
    ConversationNotFoundError,
    MessageNotFoundError,
    SessionNotFoundError,
    TenantMismatchError,
)
from continuum.domain.repositories import (
    PresenceRepository,
    SessionRepository,
    TopicRepository,
)
from continuum.infrastructure.events import EventQueue

logger = logging.getLogger(__name__)

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

_ERROR_STATUS: dict[type[ContinuumError], int] = {
    ConversationNotFoundError: 404,
    SessionNotFoundError: 404,
    MessageNotFoundError: 404,
    ConversationNotActiveError: 409,
    ActiveConversationConflictError: 409,
    TenantMismatchError: 403,
}


class BadRequestError(ValueError):
    """Malformed request body or query."""


def _error_response(status: int, error: str, message: str) -> web.Response:
    return web.json_response({"error": error, "message": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    """Map domain and validation errors to JSON error responses."""
    try:
        return await handler(request)
    except ContinuumError as e:
        status = _ERROR_STATUS.get(type(e), 400)
        logger.info("%s %s -> %d: %s", request.method, request.path, status, e)
        return _error_response(status, type(e).__name__, str(e))
    except ValueError as e:
        logger.info("%s %s -> 400: %s", request.method, request.path, e)
        return _error_response(400, "BadRequest", str(e))


async def _read_json(request: web.Request) -> dict[str, Any]:
    if not request.can_read_body:
        return {}
    data = await request.json()
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object")
    return data


def _require(data: dict[str, Any], field: str) -> Any:
    value = data.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise BadRequestError(f"'{field}' is required")
    return value


def _parse_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise BadRequestError(f"'{field}' must be an integer") from e


def _optional_int(value: Any, field: str) -> int | None:
    return None if value is None else _parse_int(value, field)


def _optional_float(value: Any, field: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise BadRequestError(f"'{field}' must be a number") from e


def _session_to_dict(session: Session) -> dict[str, Any]:
    return {
        "id": session.id,
        "tenant_id": session.tenant_id,
        "channel": session.channel,
        "external_user_id": session.external_user_id,
        "title": session.title,
        "last_seq": session.last_seq,
        "branched_from_session_id": session.branched_from_session_id,
        "branched_from_message_id": session.branched_from_message_id,
        "created_at": session.created_at.isoformat(),
    }


def _message_to_dict(message: Message) -> dict[str, Any]:
    return {
        "id": message.id,
        "session_id": message.session_id,
        "seq": message.seq,
        "role": message.role.value,
        "content": message.content,
        "created_at": message.created_at.isoformat(),
    }


def _conversation_to_dict(conversation: Conversation) -> dict[str, Any]:
    return {
        "id": conversation.id,
        "session_id": conversation.session_id,
        "tenant_id": conversation.tenant_id,
        "status": conversation.status.value,
        "start_seq": conversation.start_seq,
        "end_seq": conversation.end_seq,
        "title": conversation.title,
        "summary": conversation.summary,
        "tags": list(conversation.tags),
        "decisions": [
            {"what": d.what, "reasoning": d.reasoning} for d in conversation.decisions
        ],
        "depth": conversation.depth,
        "previous_conversation_id": conversation.previous_conversation_id,
        "relations": [
            {"conversation_id": r.conversation_id, "type": r.type.value}
            for r in conversation.relations
        ],
        "summarized": conversation.summarized,
        "created_at": conversation.created_at.isoformat(),
        "updated_at": conversation.updated_at.isoformat(),
        "closed_at": (
            conversation.closed_at.isoformat() if conversation.closed_at else None
        ),
    }


def _topic_to_dict(topic: Topic) -> dict[str, Any]:
    return {
        "id": topic.id,
        "tenant_id": topic.tenant_id,
        "name": topic.name,
        "category": topic.category,
        "personal_weight": topic.personal_weight,
        "frequency_weight": topic.frequency_weight,
        "mention_count": topic.mention_count,
        "last_mentioned_at": topic.last_mentioned_at.isoformat(),
        "metadata": topic.metadata,
        "frequency_pinned": topic.frequency_pinned,
    }


def _presence_to_dict(state: PresenceState) -> dict[str, Any]:
    return {
        "tenant_id": state.tenant_id,
        "last_activity_at": state.last_activity_at.isoformat(),
        "quiet_hours_start": state.quiet_hours_start,
        "quiet_hours_end": state.quiet_hours_end,
        "timezone": state.timezone,
        "pending_queue": [
            {
                "message": p.message,
                "priority": p.priority,
                "scheduled_for": p.scheduled_for.isoformat(),
            }
            for p in state.pending_queue
        ],
    }


def register_routes(
    app: web.Application,
    *,
    conversation_graph: ConversationGraph,
    session_repository: SessionRepository,
    topic_repository: TopicRepository,
    presence_repository: PresenceRepository,
    topic_context_use_case: TopicContextUseCase,
    chain_context_use_case: ChainContextUseCase,
    event_queue: EventQueue,
) -> None:
    """Register the RPC routes.

    Args:
        app: aiohttp application.
        conversation_graph: Conversation graph service.
        session_repository: Repository for sessions and messages.
        topic_repository: Repository for topics.
        presence_repository: Repository for presence state.
        topic_context_use_case: Recall block builder.
        chain_context_use_case: Previous-conversation chain block builder.
        event_queue: Queue for RESPONSE_COMPLETED events.
    """

    async def _require_session(session_id: str) -> Session:
        session = await session_repository.find_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    # --- sessions ---

    async def create_session(request: web.Request) -> web.Response:
        data = await _read_json(request)
        tenant_id = _require(data, "tenant_id")
        channel = _require(data, "channel")
        external_user_id = _require(data, "external_user_id")

        existing = await session_repository.find_by_external_user(
            tenant_id, channel, external_user_id
        )
        if existing is not None:
            return web.json_response(_session_to_dict(existing))

        session = await session_repository.create(
            tenant_id, channel, external_user_id, title=data.get("title")
        )
        return web.json_response(_session_to_dict(session), status=201)

    async def append_message(request: web.Request) -> web.Response:
        data = await _read_json(request)
        role = MessageRole(_require(data, "role"))
        content = _require(data, "content")
        message = await session_repository.append_message(
            request.match_info["session_id"], role, content
        )
        return web.json_response(_message_to_dict(message), status=201)

    async def response_completed(request: web.Request) -> web.Response:
        session = await _require_session(request.match_info["session_id"])
        await event_queue.enqueue(
            Event(
                type=EventType.RESPONSE_COMPLETED,
                payload={"session_id": session.id, "tenant_id": session.tenant_id},
            )
        )
        return web.json_response({"queued": True}, status=202)

    async def branch_session(request: web.Request) -> web.Response:
        data = await _read_json(request)
        branch = await conversation_graph.branch(
            request.match_info["session_id"], _require(data, "message_id")
        )
        return web.json_response(_session_to_dict(branch), status=201)

    async def link_session(request: web.Request) -> web.Response:
        data = await _read_json(request)
        conversation = await conversation_graph.link(
            request.match_info["session_id"],
            _require(data, "target_conversation_id"),
        )
        return web.json_response(_conversation_to_dict(conversation))

    # --- conversations ---

    async def create_conversation(request: web.Request) -> web.Response:
        data = await _read_json(request)
        session = await _require_session(_require(data, "session_id"))
        start_seq = _optional_int(data.get("start_seq"), "start_seq")
        conversation = await conversation_graph.create(
            session_id=session.id,
            tenant_id=session.tenant_id,
            start_seq=start_seq if start_seq is not None else session.next_seq,
            previous_conversation_id=data.get("previous_conversation_id"),
        )
        return web.json_response(_conversation_to_dict(conversation), status=201)

    async def get_conversation(request: web.Request) -> web.Response:
        conversation_id = request.match_info["conversation_id"]
        conversation = await conversation_graph.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return web.json_response(_conversation_to_dict(conversation))

    async def get_chain(request: web.Request) -> web.Response:
        conversation_id = request.match_info["conversation_id"]
        max_depth = _optional_int(request.query.get("max_depth"), "max_depth")
        if max_depth is not None and max_depth < 1:
            raise BadRequestError("'max_depth' must be >= 1")
        if max_depth is None:
            chain = await conversation_graph.get_chain(conversation_id)
        else:
            chain = await conversation_graph.get_chain(conversation_id, max_depth)
        if not chain:
            raise ConversationNotFoundError(conversation_id)
        return web.json_response({"chain": [_conversation_to_dict(c) for c in chain]})

    async def get_chain_context(request: web.Request) -> web.Response:
        conversation_id = request.match_info["conversation_id"]
        if await conversation_graph.get(conversation_id) is None:
            raise ConversationNotFoundError(conversation_id)
        context = await chain_context_use_case.build(conversation_id)
        return web.json_response({"context": context})

    async def close_conversation(request: web.Request) -> web.Response:
        conversation_id = request.match_info["conversation_id"]
        data = await _read_json(request)
        tags = data.get("tags")
        if tags is not None and not isinstance(tags, list):
            raise BadRequestError("'tags' must be a list")
        closure = ConversationClosure(
            title=data.get("title"),
            summary=data.get("summary"),
            tags=[str(tag) for tag in tags] if tags is not None else None,
            end_seq=_optional_int(data.get("end_seq"), "end_seq"),
        )
        conversation = await conversation_graph.close(conversation_id, closure)
        return web.json_response(_conversation_to_dict(conversation))

    async def advance_conversation(request: web.Request) -> web.Response:
        data = await _read_json(request)
        end_seq = _parse_int(_require(data, "end_seq"), "end_seq")
        conversation = await conversation_graph.advance_end(
            request.match_info["conversation_id"], end_seq
        )
        return web.json_response(_conversation_to_dict(conversation))

    # --- topics ---

    async def list_topics(request: web.Request) -> web.Response:
        tenant_id = _require(dict(request.query), "tenant_id")
        threshold = _optional_float(request.query.get("threshold"), "threshold")
        if threshold is None:
            topics = await topic_repository.find_by_tenant(tenant_id)
        else:
            topics = await topic_repository.get_active(tenant_id, threshold)
        return web.json_response({"topics": [_topic_to_dict(t) for t in topics]})

    async def upsert_topic(request: web.Request) -> web.Response:
        data = await _read_json(request)
        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise BadRequestError("'metadata' must be an object")
        topic = await topic_repository.upsert(
            name=_require(data, "name"),
            category=data.get("category") or "general",
            tenant_id=_require(data, "tenant_id"),
            personal_weight=_optional_float(
                data.get("personal_weight"), "personal_weight"
            ),
            metadata=metadata,
        )
        return web.json_response(_topic_to_dict(topic))

    async def update_topic_weights(request: web.Request) -> web.Response:
        data = await _read_json(request)
        personal_weight = _optional_float(
            data.get("personal_weight"), "personal_weight"
        )
        frequency_weight = _optional_float(
            data.get("frequency_weight"), "frequency_weight"
        )
        if personal_weight is None and frequency_weight is None:
            raise BadRequestError(
                "'personal_weight' or 'frequency_weight' is required"
            )
        topic_id = request.match_info["topic_id"]
        topic = await topic_repository.update_weights(
            topic_id,
            personal_weight=personal_weight,
            frequency_weight=frequency_weight,
        )
        if topic is None:
            return _error_response(404, "TopicNotFound", f"Topic not found: {topic_id}")
        return web.json_response(_topic_to_dict(topic))

    # --- presence ---

    async def get_presence(request: web.Request) -> web.Response:
        tenant_id = request.match_info["tenant_id"]
        state = await presence_repository.find_by_tenant(tenant_id)
        if state is None:
            return _error_response(
                404, "PresenceNotFound", f"No presence state for {tenant_id}"
            )
        return web.json_response(_presence_to_dict(state))

    async def set_quiet_hours(request: web.Request) -> web.Response:
        data = await _read_json(request)
        start = _require(data, "start")
        end = _require(data, "end")
        for field, value in (("start", start), ("end", end)):
            if not isinstance(value, str) or not HHMM_PATTERN.match(value):
                raise BadRequestError(f"'{field}' must be HH:MM")
        tz_name = data.get("timezone") or "UTC"
        try:
            ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise BadRequestError(f"Unknown timezone: {tz_name}") from e

        state = await presence_repository.set_quiet_hours(
            request.match_info["tenant_id"], start, end, tz_name
        )
        return web.json_response(_presence_to_dict(state))

    async def record_activity(request: web.Request) -> web.Response:
        state = await presence_repository.record_activity(
            request.match_info["tenant_id"]
        )
        return web.json_response(_presence_to_dict(state))

    # --- topic context ---

    async def build_context(request: web.Request) -> web.Response:
        data = await _read_json(request)
        tenant_id = _require(data, "tenant_id")
        token_budget = _optional_int(data.get("token_budget"), "token_budget")
        context = await topic_context_use_case.build(
            tenant_id, data.get("message") or "", token_budget
        )
        return web.json_response({"context": context})

    router = app.router
    router.add_post("/sessions", create_session)
    router.add_post("/sessions/{session_id}/messages", append_message)
    router.add_post("/sessions/{session_id}/response-completed", response_completed)
    router.add_post("/sessions/{session_id}/branch", branch_session)
    router.add_post("/sessions/{session_id}/link", link_session)
    router.add_post("/conversations", create_conversation)
    router.add_get("/conversations/{conversation_id}", get_conversation)
    router.add_get("/conversations/{conversation_id}/chain", get_chain)
    router.add_get("/conversations/{conversation_id}/context", get_chain_context)
    router.add_post("/conversations/{conversation_id}/close", close_conversation)
    router.add_post("/conversations/{conversation_id}/advance", advance_conversation)
    router.add_get("/topics", list_topics)
    router.add_post("/topics", upsert_topic)
    router.add_put("/topics/{topic_id}/weights", update_topic_weights)
    router.add_get("/presence/{tenant_id}", get_presence)
    router.add_put("/presence/{tenant_id}/quiet-hours", set_quiet_hours)
    router.add_post("/presence/{tenant_id}/activity", record_activity)
    router.add_post("/context", build_context)
