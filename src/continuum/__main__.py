"""アプリケーションのエントリポイント"""

import asyncio
import logging
import os
import signal
import sys
from functools import partial
from pathlib import Path

from continuum.application.handlers import (
    ConversationClosedEventHandler,
    PresenceCheckEventHandler,
    ResponseCompletedEventHandler,
)
from continuum.application.services import ConversationGraph, TopicWeightMaintenance
from continuum.application.use_cases import (
    BoundaryDecisionUseCase,
    ChainContextUseCase,
    EngagementUseCase,
    SummarizeConversationUseCase,
    TopicContextUseCase,
)
from continuum.config import ConfigError, LoggingConfig, load_config
from continuum.infrastructure.events import (
    EventDispatcher,
    EventLoop,
    EventQueue,
    EventScheduler,
)
from continuum.infrastructure.http import RPCServer
from continuum.infrastructure.llm import (
    LLMClient,
    LLMConversationSummarizer,
    LLMTopicClassifier,
)
from continuum.infrastructure.messaging import LoggingMessageSink
from continuum.infrastructure.persistence import (
    DatabaseError,
    DatabaseManager,
    SQLiteConversationRepository,
    SQLitePresenceRepository,
    SQLiteSessionRepository,
    SQLiteTopicRepository,
)
from continuum.presentation import error_middleware, register_routes

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
SHUTDOWN_TIMEOUT_SECONDS = 5.0


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            logging.getLogger(logger_name).setLevel(
                getattr(logging, logger_level.upper(), logging.INFO)
            )
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


async def main() -> None:
    """アプリケーションを起動する"""
    config_path = Path(os.environ.get("CONTINUUM_CONFIG", DEFAULT_CONFIG_PATH))
    if not config_path.exists():
        logger.error("%s not found", config_path)
        sys.exit(1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        sys.exit(1)

    configure_logging(config.logging)

    # Initialize database
    db_manager = DatabaseManager(config.database.path)
    try:
        await db_manager.create_tables()
    except DatabaseError as e:
        logger.error("Failed to initialize database: %s", e)
        sys.exit(1)

    session_repository = SQLiteSessionRepository(db_manager.get_session)
    conversation_repository = SQLiteConversationRepository(db_manager.get_session)
    topic_repository = SQLiteTopicRepository(db_manager.get_session)
    presence_repository = SQLitePresenceRepository(db_manager.get_session)

    # LLM clients (classifier / summarizer fall back to default)
    debug_llm_messages = bool(config.logging and config.logging.debug_llm_messages)
    default_llm = config.llm["default"]
    classifier_client = LLMClient(
        config.llm.get("classifier", default_llm),
        debug_llm_messages=debug_llm_messages,
    )
    summarizer_client = LLMClient(
        config.llm.get("summarizer", default_llm),
        debug_llm_messages=debug_llm_messages,
    )

    event_queue = EventQueue()
    conversation_graph = ConversationGraph(
        session_repository, conversation_repository, event_queue=event_queue
    )
    topic_weights = TopicWeightMaintenance(topic_repository, config.topics)

    boundary_decision = BoundaryDecisionUseCase(
        session_repository=session_repository,
        conversation_graph=conversation_graph,
        topic_classifier=LLMTopicClassifier(classifier_client),
        config=config.boundary,
    )
    summarize_conversation = SummarizeConversationUseCase(
        session_repository=session_repository,
        conversation_repository=conversation_repository,
        summarizer=LLMConversationSummarizer(summarizer_client),
    )
    engagement = EngagementUseCase(
        presence_repository=presence_repository,
        topic_weights=topic_weights,
        message_sink=LoggingMessageSink(),
        config=config.presence,
    )
    topic_context = TopicContextUseCase(
        related_search=conversation_repository,
        config=config.topic_context,
    )
    chain_context = ChainContextUseCase(conversation_graph)

    # Event system
    dispatcher = EventDispatcher()
    dispatcher.register_handler(
        ResponseCompletedEventHandler(
            boundary_decision_use_case=boundary_decision,
            presence_repository=presence_repository,
        ).handle
    )
    dispatcher.register_handler(
        ConversationClosedEventHandler(summarize_conversation).handle
    )
    dispatcher.register_handler(PresenceCheckEventHandler(engagement).handle)

    event_loop = EventLoop(event_queue, dispatcher)
    event_scheduler = EventScheduler(
        event_queue, check_interval_seconds=config.presence.check_interval_seconds
    )

    rpc_server = RPCServer(
        event_loop=event_loop,
        event_scheduler=event_scheduler,
        db_manager=db_manager,
        register_routes=partial(
            register_routes,
            conversation_graph=conversation_graph,
            session_repository=session_repository,
            topic_repository=topic_repository,
            presence_repository=presence_repository,
            topic_context_use_case=topic_context,
            chain_context_use_case=chain_context,
            event_queue=event_queue,
        ),
        middlewares=[error_middleware],
        host=config.server.host,
        port=config.server.port,
    )

    loop_task = asyncio.create_task(event_loop.start())
    scheduler_task = asyncio.create_task(event_scheduler.start())
    await rpc_server.start()

    # Setup signal handlers for graceful shutdown
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal...")
        stop_event.set()

    loop.add_signal_handler(signal.SIGINT, shutdown_handler)
    loop.add_signal_handler(signal.SIGTERM, shutdown_handler)

    await stop_event.wait()

    # Graceful shutdown
    logger.info("Shutting down...")
    await rpc_server.stop()
    await event_scheduler.stop()
    await event_loop.stop()

    done, pending = await asyncio.wait(
        {loop_task, scheduler_task}, timeout=SHUTDOWN_TIMEOUT_SECONDS
    )
    for task in pending:
        logger.warning("Task did not stop in time, cancelling")
        task.cancel()
    await asyncio.gather(loop_task, scheduler_task, return_exceptions=True)

    # Run boundary decisions and summaries that were already queued
    remaining = await event_loop.drain()
    if remaining:
        logger.info("Processed %d queued events before exit", remaining)

    await db_manager.close()
    logger.info("Shutdown complete")


def run() -> None:
    """Run the async main function."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    run()
