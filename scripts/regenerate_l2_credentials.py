#!/usr/bin/env python3
"""
Regenerate L2 API Credentials for Polymarket

Signs a ClobAuth message (nonce 0) with the configured wallet, derives the
existing API key for that nonce or creates one, and prints the triple in the
form expected by CLOB_API_KEY / CLOB_SECRET / CLOB_PASS_PHRASE.

Usage:
    python scripts/regenerate_l2_credentials.py [--persist]

    --persist   also write the triple to the AWS_SECRET_ID secret
"""

import asyncio
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from config.aws_config import AWSConfig
from config.settings import get_settings
from core.credentials import CredentialBootstrap
from core.wallet import Wallet
from utils.exceptions import TradingToolsError


def _mask(value: str, head: int = 8, tail: int = 4) -> str:
    return f"{value[:head]}...{value[-tail:]}"


async def regenerate_credentials(persist: bool) -> bool:
    settings = get_settings()
    aws_config = AWSConfig(settings.aws_secret_id, settings.aws_region) if settings.aws_secret_id else None

    print("=" * 80)
    print("Polymarket L2 Credentials Regeneration")
    print("=" * 80)
    print()

    print("📥 Step 1: Loading wallet private key...")
    private_key = settings.polymarket_private_key
    if not private_key and aws_config is not None:
        private_key = aws_config.get_wallet_private_key()
    if not private_key:
        print("❌ POLYMARKET_PRIVATE_KEY is not set and no AWS secret is configured")
        return False
    wallet = Wallet.from_private_key(private_key)
    print(f"✅ Wallet: {wallet.address}")
    print()

    print("🔑 Step 2: Deriving (or creating) L2 API credentials...")
    bootstrap = CredentialBootstrap(
        settings.clob_api_url,
        chain_id=settings.chain_id,
        timeout_sec=settings.api_timeout_sec
    )
    try:
        creds = await bootstrap.derive_or_reuse(wallet)
    except TradingToolsError as e:
        print(f"❌ Failed to obtain credentials: {e}")
        return False

    print("✅ L2 credentials obtained")
    print(f"   API Key: {_mask(creds.key)}")
    print(f"   API Secret: {_mask(creds.secret)}")
    print(f"   API Passphrase: {_mask(creds.passphrase, 4, 2)}")
    print()

    if persist:
        if aws_config is None:
            print("❌ --persist requires AWS_SECRET_ID")
            return False
        print("💾 Step 3: Updating AWS Secrets Manager...")
        try:
            aws_config.update_api_credentials(creds.key, creds.secret, creds.passphrase)
        except TradingToolsError as e:
            print(f"❌ Failed to update Secrets Manager: {e}")
            return False
        print("✅ AWS Secrets Manager updated")
    else:
        print("Add these to your environment to skip derivation at startup:")
        print(f"   CLOB_API_KEY={creds.key}")
        print(f"   CLOB_SECRET={creds.secret}")
        print(f"   CLOB_PASS_PHRASE={creds.passphrase}")
    print()
    return True


if __name__ == "__main__":
    success = asyncio.run(regenerate_credentials('--persist' in sys.argv[1:]))
    sys.exit(0 if success else 1)
