"""
InvoiceStream - Streaming Invoice Extraction 🧾
===============================================

This is the main entry point for the InvoiceStream FastAPI application.
It initializes the application, sets up lifecycle management (startup/shutdown),
and registers the API routers.

Key Responsibilities:
---------------------
1. **App Initialization**: Creates the `FastAPI` app instance with metadata.
2. **Lifecycle Management**: Configures logging and reports the working directories on startup.
3. **Route Registration**: Imports and includes routers from `src/routes`.
4. **Server Entry**: Provides a standard execution block for running via `python main.py`.

Usage:
------
Run the server directly:
    $ python src/main.py

Or using uvicorn (from inside src/):
    $ uvicorn main:app --reload
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from core.config import get_settings
from core.logging_config import get_logger, setup_logging
from routes import base_router, invoice_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application Lifespan Context Manager.

    Startup Actions:
    - Configure logging from settings.
    - Log the input/output directories and the model in use.

    The schema is compiled lazily by the first request, so a missing schema
    file surfaces as a stream ``error`` event rather than a failed startup.
    """
    # --- STARTUP ---
    settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.log_json, log_file=settings.log_file or None)
    logger.info(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"📂 Input: {settings.paths.input_path} | Output: {settings.paths.output_path}")
    logger.info(f"🤖 VLM: {settings.vlm.provider}/{settings.vlm.model}")

    yield

    # --- SHUTDOWN ---
    logger.info("👋 Shutting down...")


# --- Application Setup ---
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
     InvoiceStream API 🧾

    Extracts structured data from invoice PDFs and images with a three-pass
    vision-model conversation, validates it against a JSON schema and streams
    progress to the client as Server-Sent Events.
    """,
    lifespan=lifespan,
)

# --- Router Registration ---
# base_router: Health checks and basic info
app.include_router(base_router)

# invoice_router: Streaming extraction endpoint (/api/v1/process-invoices)
app.include_router(invoice_router)


if __name__ == "__main__":
    """
    Standard Entry Point.

    Allows running the application directly as a script.
    Defaults to host 0.0.0.0 (accessible externally) on port 8007.
    """
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8007)
