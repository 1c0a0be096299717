import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from baggo.agents.tool_dispatcher import TOOL_CAPABILITIES
from baggo.api.routes_chat import router as chat_router
from baggo.api.routes_conversation import router as conversation_router
from baggo.api.routes_itinerary import router as itinerary_router
from baggo.core.config_loader import settings
from baggo.core.logger import logger


app = FastAPI(
    title="Baggo Pet Travel Planner",
    description="Chat-driven pet-friendly trip planning: slot filling, place lookups and itinerary parsing",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (chat_router, conversation_router, itinerary_router):
    app.include_router(router)

logger.info(f"Baggo API ready ({settings.environment}), chat model {settings.gpt_model_chat}")


@app.get("/")
def health():
    return {
        "status": "ok",
        "env": settings.environment,
        "tools": [c.name for c in TOOL_CAPABILITIES],
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.environment == "development")
