from database import Base, engine
from dependencies import lifespan
from dotenv import load_dotenv
from errors import LeetStreakError
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import models  # Models to be created in DB when API starts
from routes import challenges, dashboard, leaderboard, user
import logging
import os

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Ensure DB tables are created
try:
    Base.metadata.create_all(bind=engine)
except Exception as e:
    logger.error("Error creating database tables: %s", e)

app = FastAPI(title="LeetStreak", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LeetStreakError)
async def leetstreak_error_handler(request: Request, exc: LeetStreakError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/")
async def root():
    return {"message": "Welcome to LeetStreak!"}


app.include_router(user.router)
app.include_router(leaderboard.router)
app.include_router(challenges.router)
app.include_router(dashboard.router)
