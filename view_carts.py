import sys

import redis

from cart_service.cart_repository import RedisCartRepository
from cart_service.config import Settings
from cart_service.reducer import total_price, total_quantity


def main() -> int:
    settings = Settings()

    try:
        redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
        )
        # PING fails fast if the server is not reachable
        redis_client.ping()
    except redis.RedisError as e:
        print(f"❌ Failed to connect to Redis: {e}")
        print("Make sure Redis is running and STORAGE_BACKEND=redis is set for the service")
        return 1

    try:
        session_ids = RedisCartRepository.list_session_ids(redis_client)
        print(f"✅ Found {len(session_ids)} active carts:\n")

        if not session_ids:
            print("No carts found. Add items via the API first, e.g.:")
            print("\ncurl -X POST http://localhost:8001/cart/items \\")
            print('  -H "X-Cart-Session: demo" -H "Content-Type: application/json" \\')
            print('  -d \'{"id": "kit-starter", "name": "Starter Kit", "price": "59.99", '
                  '"image": "/img/kit.jpg", "kind": "kit"}\'\n')
            return 0

        for session_id in session_ids:
            repo = RedisCartRepository(redis_client, session_id)
            items = repo.load()

            print(f"🔑 Session: {session_id}")
            print(f"⏱️  TTL: {repo.time_to_live()} seconds remaining")
            for item in items:
                print(f"   {item.quantity} x {item.name} ({item.kind.label}) @ {item.price} = {item.line_total}")
            print(f"🛒 Units: {total_quantity(items)}  Total: {total_price(items)}")
            print("-" * 50)

    except redis.RedisError as e:
        print(f"❌ Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
