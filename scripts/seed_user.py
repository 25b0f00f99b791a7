import asyncio
import json

from app.core.config import get_settings
from app.services.store import build_store

async def main():
    store = build_store(get_settings())
    await store.init()

    user_id = input("Facebook user id: ").strip()
    raw = input("User data as JSON (optional): ").strip() or "{}"
    if not user_id:
        print("User id cannot be empty")
        return

    try:
        data = json.loads(raw)
    except ValueError as e:
        print("Invalid JSON:", e)
        return

    try:
        await store.put_user(user_id, data)
        print("User record saved:", user_id)
    finally:
        await store.close()

if __name__ == "__main__":
    asyncio.run(main())
