#!/usr/bin/env python3
"""Helper script to check and create the .env file for the pricing service."""

from pathlib import Path
import os
import sys

TEMPLATE = """# Supabase Configuration (Required: zones, adjustments and promotions live there)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
CP_SUPABASE_URL=https://your-project-id.supabase.co
CP_SUPABASE_KEY=your-service-role-key-here

# API Configuration
CP_API_PREFIX=/api
CP_LOG_LEVEL=info

# Geocoding (Nominatim requires an identifying User-Agent)
CP_GEOCODING_BASE_URL=https://nominatim.openstreetmap.org/search
CP_GEOCODING_USER_AGENT=DeliveryApp/1.0
CP_GEOCODING_TIMEOUT_SECONDS=10

# Bulk orders: threshold:percent pairs or a JSON object
CP_VOLUME_DISCOUNT_TIERS=3:5,6:10,11:15
"""


def _mask(value: str) -> str:
    return value[:20] + "..." + value[-10:] if len(value) > 20 else value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Pricing Service Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Please edit .env and add your Supabase credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        name, sep, value = line.partition("=")
        if sep and name.strip() == "CP_SUPABASE_KEY":
            print(f"{name}={_mask(value.strip())}")
        else:
            print(line)
    print("-" * 60)
    print()

    for name in ("CP_SUPABASE_URL", "CP_SUPABASE_KEY"):
        if os.getenv(name):
            print(f"✅ {name} set in environment")
        else:
            print(f"ℹ️  {name} not in environment (will be read from .env)")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from courier_pricing.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    print(f"Geocoding endpoint: {settings.geocoding_base_url}")
    print(f"Volume discount tiers: {settings.volume_discount_tiers}")
    print(f"First-order promo status filter: {settings.first_order_status}")
    print()
    if settings.supabase_url and settings.supabase_key:
        print("✅ SUCCESS: Supabase is configured!")
    else:
        print("❌ ERROR: Supabase is NOT configured")
        print("1. Make sure variables start with CP_ prefix")
        print("2. Restart the server after editing .env")


if __name__ == "__main__":
    main()
