"""
Session acquisition - cached login and realm listing
"""
import asyncio
import logging
from pathlib import Path

from realmpy import (
    RealmContext,
    SQLiteSecretStorage,
    APIConfig,
    EmailLoginError,
    acquire_session,
    list_realms,
    setup_logging
)


async def main():
    logging.basicConfig(level=logging.INFO)
    setup_logging(logging.INFO)
    
    secrets = SQLiteSecretStorage("realm", Path.home() / ".config" / "realm")
    context = RealmContext(secrets, APIConfig(device_name="realm example"))
    
    # First run: password login (or email login), credential cached.
    # Next runs: client restored from the cache without logging in again.
    try:
        client = await acquire_session(
            context,
            "https://matrix.realm.example",
            "alice",
            "password"
        )
    except EmailLoginError as e:
        print(f"Login failed: {e.errcode} {e.error} (HTTP {e.status})")
        return
    finally:
        await secrets.close()
    
    print(f"Logged in as {client.user_id} on device {client.device_id}")
    try:
        realms = await list_realms(context, client)
    finally:
        await client.close()
    
    if realms:
        print(f"Default realm: {realms[0]} ({len(realms)} total)")
    else:
        print("No realms found")


if __name__ == "__main__":
    asyncio.run(main())
