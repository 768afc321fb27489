from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from personall.core.config import get_settings
from personall.core.logging_config import configure_logging
from personall.routers import coach, nutrition, plans, public

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Personall AI API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(plans.router)
app.include_router(nutrition.router)
app.include_router(coach.router)
app.include_router(public.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to Personall AI"}
