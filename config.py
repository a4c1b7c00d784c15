import os
import sys
from dotenv import load_dotenv

load_dotenv()

# Detect environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

# API Configuration
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_WORKERS = int(os.getenv("API_WORKERS", "1"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Identities
ADMIN_ADDRESS = os.getenv("ADMIN_ADDRESS", "0x" + "a" * 40)
COLLECTION_ADDRESS = os.getenv("NFT_CONTRACT_ADDRESS") or None
MARKETPLACE_ADDRESS = os.getenv("MARKETPLACE_ADDRESS") or None

# Collection metadata
TOKEN_NAME = os.getenv("TOKEN_NAME", "MetaLease NFT")
TOKEN_SYMBOL = os.getenv("TOKEN_SYMBOL", "MLNFT")


def _fail(title, lines):
    print("=" * 70)
    print(f"CRITICAL ERROR: {title}")
    print("=" * 70)
    for line in lines:
        print(line)
    print("\n" + "=" * 70)
    sys.exit(1)


# Platform fee (basis points, 10000 = 100%)
try:
    PLATFORM_FEE_BPS = int(os.getenv("PLATFORM_FEE_BPS", "250"))
    MAX_PLATFORM_FEE_BPS = int(os.getenv("MAX_PLATFORM_FEE_BPS", "1000"))
except ValueError:
    _fail("Platform fee settings must be integers!", [
        "\nPLATFORM_FEE_BPS and MAX_PLATFORM_FEE_BPS are basis points,",
        "for example PLATFORM_FEE_BPS=250 for 2.5%.",
    ])

if PLATFORM_FEE_BPS < 0 or MAX_PLATFORM_FEE_BPS < 0:
    _fail("Platform fee settings cannot be negative!", [
        f"\nPLATFORM_FEE_BPS={PLATFORM_FEE_BPS}",
        f"MAX_PLATFORM_FEE_BPS={MAX_PLATFORM_FEE_BPS}",
    ])

if MAX_PLATFORM_FEE_BPS > 10000:
    _fail("MAX_PLATFORM_FEE_BPS is above 100%!", [
        f"\nCurrent value: {MAX_PLATFORM_FEE_BPS} (limit 10000)",
    ])

if PLATFORM_FEE_BPS > MAX_PLATFORM_FEE_BPS:
    _fail("PLATFORM_FEE_BPS exceeds MAX_PLATFORM_FEE_BPS!", [
        f"\nPLATFORM_FEE_BPS={PLATFORM_FEE_BPS}",
        f"MAX_PLATFORM_FEE_BPS={MAX_PLATFORM_FEE_BPS}",
        "\nLower the fee or raise the cap in your .env file.",
    ])

# CORS Configuration with validation
ALLOWED_ORIGINS_STR = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:8000,http://127.0.0.1:8000"
)
ALLOWED_ORIGINS = [origin.strip() for origin in ALLOWED_ORIGINS_STR.split(",")]

if "*" in ALLOWED_ORIGINS:
    if IS_PRODUCTION:
        _fail("Wildcard CORS (*) not allowed in production!", [
            "\nCurrent ALLOWED_ORIGINS contains wildcard '*'",
            "\nSet specific origins in your .env file:",
            "  ALLOWED_ORIGINS=https://yourdomain.com,https://app.yourdomain.com",
        ])
    else:
        print("\n⚠️  WARNING: Wildcard CORS (*) detected in development mode")
        print("   This should NOT be used in production!\n")
