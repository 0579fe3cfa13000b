import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from salescoach.api import chat, rubric
from salescoach.config import settings
from salescoach.services.agent_directory import AgentDirectory
from salescoach.services.call_store import CallStore
from salescoach.services.chat_service import ChatService
from salescoach.services.claude_client import ClaudeClient
from salescoach.services.embedding_client import EmbeddingClient
from salescoach.services.handlers import HandlerContext, HandlerDispatcher
from salescoach.services.intent_classifier import IntentClassifier
from salescoach.services.parameter_resolver import ParameterResolver
from salescoach.services.rubric_service import RubricService
from salescoach.services.search_store import SearchStore

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

# Suppress noisy third-party loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("anthropic").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def build_chat_service(session_factory, llm, embeddings, rubrics: RubricService) -> ChatService:
    agents = AgentDirectory(session_factory, match_threshold=settings.agent_match_threshold)
    ctx = HandlerContext(
        llm=llm,
        embeddings=embeddings,
        agents=agents,
        calls=CallStore(session_factory),
        search=SearchStore(session_factory),
        rubrics=rubrics,
        list_limit=settings.list_limit,
        search_limit=settings.search_limit,
        search_similarity_threshold=settings.search_similarity_threshold,
        analysis_max_tokens=settings.analysis_max_tokens,
        summary_max_tokens=settings.summary_max_tokens,
        general_max_tokens=settings.general_max_tokens,
    )
    return ChatService(
        classifier=IntentClassifier(llm, max_tokens=settings.classification_max_tokens),
        resolver=ParameterResolver(agents),
        dispatcher=HandlerDispatcher(ctx),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables on startup (SQLite, no migration step)
    from salescoach.models.base import async_session_factory, init_db
    await init_db()
    logger.info("Database tables created / verified")

    rubrics = RubricService(async_session_factory)
    seeded = await rubrics.seed_default_rubric()
    if seeded:
        logger.info(f"Seeded default rubric '{seeded.name}' version {seeded.version}")

    llm = ClaudeClient(api_key=settings.anthropic_api_key, model=settings.anthropic_model)
    embeddings = EmbeddingClient(api_key=settings.openai_api_key, model=settings.embedding_model)

    app.state.rubric_service = rubrics
    app.state.chat_service = build_chat_service(async_session_factory, llm, embeddings, rubrics)
    yield


app = FastAPI(
    title="Sales Coach API",
    description="Chat assistant for sales call analytics and rubric-based coaching",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(rubric.router, prefix="/api/rubric", tags=["rubric"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
