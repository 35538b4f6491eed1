"""Main FastAPI application."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from workout_sheet_api.config import settings
from workout_sheet_api.api.routes import router
from workout_sheet_api.api.library_routes import router as library_router

app = FastAPI(title="Workout Sheet API")

# Configure CORS to allow requests from the trainer UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(library_router)
