from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pm_api.api.router import api_router
from pm_api.core.logging_setup import setup_logging

setup_logging()

app = FastAPI(title="Project Management API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix="/api")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
