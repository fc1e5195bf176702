import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .routers import payments
from .services.connector import MollieConnector
from .config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """One connector per application, closed on shutdown."""
    app.state.connector = MollieConnector(get_settings().connector_settings())
    try:
        yield
    finally:
        await app.state.connector.aclose()


app = FastAPI(title="Mollie Connector Service", lifespan=lifespan)

# CORS - allow your app domain(s)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # change to your frontend domains in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(payments.router)

if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.mollie_debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run("mollie_connector.main:app", host=settings.app_host, port=settings.app_port,
                reload=(settings.env != "production"))
