#backend/app/main.py

import logging
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backend.app.api.routes import api_router, resume_router
from backend.app.config import settings

class ResumeReviewApp:
    def __init__(self):
        self._configure_logging()
        self.app = FastAPI(
            title="Resume Review API",
            description="Upload a resume, get ATS and content feedback scored by an AI reviewer.",
            version="0.3.0"
        )
        self._configure_cors()
        self.include_routers()

    def _configure_logging(self):
        logging.basicConfig(
            level=settings.LOG_LEVEL.upper(),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    def _configure_cors(self):
        origins_env = os.getenv("BACKEND_CORS_ORIGINS", "http://localhost:8501,http://127.0.0.1:8501")
        origins = [o.strip() for o in origins_env.split(",") if o.strip()]
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def include_routers(self):
        self.app.include_router(api_router)
        self.app.include_router(resume_router)

def get_app():
    """Entrypoint for ASGI"""
    return ResumeReviewApp().app

# Run with 'uvicorn backend.app.main:app'
app = get_app()
