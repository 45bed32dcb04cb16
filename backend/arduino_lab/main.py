import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arduino_lab.api.routes import router
from arduino_lab.config import CORS_ORIGINS, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="Arduino Lab Assistant",
    version="0.1.0",
)

# Middleware FIRST
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes AFTER middleware
app.include_router(router)
