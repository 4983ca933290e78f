"""
Oven_Treats.main

Simple smoke-test harness for the Oven Treats bakery backend.

Run from the src directory with:
    python -m Oven_Treats.main
"""

from datetime import timedelta
from pprint import pprint

from Oven_Treats.config import config_store
from Oven_Treats.data.repositories.kv_repo import SqliteKeyValueStore
from Oven_Treats.domain.models import CartItem
from Oven_Treats.integrations.backup_file_transport import LocalBackupTransport
from Oven_Treats.services.backup_codec import create_backup, get_backup_info
from Oven_Treats.services.bakery_store import BakeryStore
from Oven_Treats.services.customer_projection import customer_stats
from Oven_Treats.services.database_provider import DatabaseProvider
from Oven_Treats.utils.logger import configure_logging
from Oven_Treats.utils.timestamps import now_utc


def run_smoke_test() -> None:
    configure_logging()
    print("=== Oven Treats smoke test starting ===")

    # 1) Open the persisted store
    print("[1] Opening the bakery store...")
    store = BakeryStore(SqliteKeyValueStore())
    print(f"    ✔ {len(store.products)} products, {len(store.orders)} orders, {len(store.users)} users\n")

    # 2) First-run admin
    if not store.is_initialized():
        print("[2] Creating the first admin account...")
        admin = store.register_user(
            username="admin",
            password="admin123",
            name="Smoke Test Admin",
            email="admin@example.com",
            role="admin",
        )
        print(f"    ✔ Created {admin.username} ({admin.role})\n")
    else:
        print("[2] Store already has users, skipping admin setup.\n")

    # 3) Place an order through the provider (local mode)
    print("[3] Placing an order...")
    provider = DatabaseProvider(store, mode="local")
    provider.refresh()
    product = provider.products[0]
    order = provider.add_order(
        items=[CartItem(product=product, quantity=2)],
        total=product.price * 2,
        customer_name="Ana Smoke",
        customer_phone="555-0100",
        customer_email="ana@example.com",
        delivery_date=now_utc() + timedelta(days=1),
        estimated_time="10:00",
    )
    print("    ✔ Created order:")
    pprint(order.to_dict())
    print()

    # 4) Move it along
    print(f"[4] Marking order {order.id} as preparing...")
    provider.update_order_status(order.id, "preparing")
    print(f"    ✔ Status counts: {store.order_counts_by_status()}\n")

    # 5) Customers
    print("[5] Customers projected from orders...")
    for c in provider.customers:
        print(f" - {c.name} <{c.email}> orders={c.total_orders} spent={c.total_spent:.2f}")
    stats = customer_stats(provider.customers)
    print(f"    ✔ {stats.total_customers} customers, revenue {stats.total_revenue:.2f}\n")

    # 6) Local backup
    print("[6] Writing a local backup...")
    transport = LocalBackupTransport(config_store.get_backup_dir())
    backup = create_backup(store)
    path = transport.export_path(backup)
    print(f"    ✔ Wrote {path}")
    pprint(get_backup_info(backup))
    print()

    print("=== Smoke test complete ===")


if __name__ == "__main__":
    run_smoke_test()
