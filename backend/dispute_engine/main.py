"""
Dispute Engine - FastAPI Application

Main entry point for the Dispute Engine backend.

Pipeline:
- Upload -> ReportNormalizer -> CreditReportData
- CreditReportData -> IssueIdentifier -> RecommendedDispute list
- RecommendedDispute -> Legal Reference Resolver -> citations + sample language
- RecommendedDispute -> LetterTemplateEngine -> DisputeLetter
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import sessions_router, reports_router, letters_router, chat_router
from .database import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Dispute Engine",
    description="""
    Dispute Engine - Credit Report Dispute Letter Generation

    Upload a credit report, review the discrepancies found in it, and
    generate FCRA dispute letters addressed to the credit bureaus.

    ## Pipeline
    1. **Report Normalizer**: Upload PDF/HTML/text -> structured report
    2. **Issue Identifier**: Report -> ranked discrepancies
    3. **Legal Reference Resolver**: Discrepancy -> FCRA citations, sample language
    4. **Letter Template Engine**: Discrepancy -> dispute letter
    5. **Dispute Copilot**: Chat front-end over the steps above
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sessions_router)
app.include_router(reports_router)
app.include_router(letters_router)
app.include_router(chat_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Dispute Engine",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
