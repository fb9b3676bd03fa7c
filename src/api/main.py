import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.actions import router as actions_router
from src.api.routes.jobs import router as jobs_router
from src.api.routes.meetings import router as meetings_router
from src.api.routes.recordings import router as recordings_router
from src.api.routes.review import router as review_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Recording-to-Action API",
    description="Turns recorded conversations into reviewed, trackable actions",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(recordings_router)
app.include_router(meetings_router)
app.include_router(review_router)
app.include_router(actions_router)
app.include_router(jobs_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
