"""
Main application initialization and configuration.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from soundnest.api.routes import auth, favorites, playlists, profile
from soundnest.core import config
from soundnest.core.errors import register_exception_handlers

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="SoundNest API",
    description="Music streaming backend: profiles, playlists and favorites "
    "backed by a hosted Postgres with row-level security.",
    version="1.0.0",
    openapi_tags=[
        {"name": "auth", "description": "Registration, login and token refresh"},
        {"name": "profile", "description": "The current user's profile"},
        {"name": "playlists", "description": "Playlists and their tracks"},
        {"name": "favorites", "description": "Favorite tracks"},
    ],
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(playlists.router)
app.include_router(favorites.router)


@app.get("/")
def read_root():
    """Return a welcome message at the root endpoint."""
    return {"message": "Welcome to SoundNest API"}


@app.get("/health")
def health_check():
    """Health check endpoint to verify the API is running."""
    return {"status": "healthy"}
