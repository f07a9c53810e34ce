from aws_config import INVENTORY_TABLE, ORDERS_TABLE, dynamodb_resource
from canteen.models import MenuItem
from canteen.stock import StockLedger

# -------------------------------
# Canteen menu: category -> (item_id, name, price, starting stock)
# -------------------------------
MENU = {
    "morning_food": [
        ("poori", "poori", 18, 7),
        ("dosai", "dosai", 20, 9),
        ("spl-dosai", "spl dosai", 40, 6),
    ],
    "lunch": [
        ("chappathi", "chappathi", 18, 8),
        ("porota", "porota", 18, 5),
        ("kothu-porotta", "kothu porotta", 80, 10),
        ("meals", "meals", 70, 6),
    ],
    "snacks": [
        ("sambar-vadai", "sambar vadai", 15, 4),
        ("curd-vadai", "curd vadai", 20, 7),
        ("plain-sandwich", "plain sandwich", 30, 9),
        ("happy-happy", "happy happy", 5, 6),
    ],
    "chocolate": [
        ("five-star", "five star", 5, 10),
        ("dairy-milk", "dairy milk", 5, 8),
        ("dairy-milk-crackle", "dairy milk crackle", 45, 5),
    ],
    "drink": [
        ("tea", "Tea", 12, 9),
        ("coffee", "coffee", 18, 7),
        ("badam-milk", "badam milk", 30, 4),
    ],
}


def menu_items():
    for category, rows in MENU.items():
        for item_id, name, price, qty in rows:
            yield MenuItem(item_id=item_id, name=name, category=category,
                           price=price, available_quantity=qty)


# -------------------------------
# Clear DynamoDB tables safely
# -------------------------------
def clear_table(ddb, table_name):
    table = ddb.Table(table_name)
    print(f"Clearing table: {table_name}")

    # Get primary key names dynamically
    key_names = [k['AttributeName'] for k in table.key_schema]

    # Scan all items
    response = table.scan()
    items = response.get("Items", [])
    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
        items.extend(response.get("Items", []))

    # Delete items using correct key(s)
    with table.batch_writer() as batch:
        for item in items:
            key = {k: item[k] for k in key_names}
            batch.delete_item(Key=key)
    print(f"✅ Cleared {len(items)} items from {table_name}")
    return len(items)


# -------------------------------
# Seed the menu through the ledger
# -------------------------------
def seed_menu(ledger):
    count = 0
    for item in menu_items():
        ledger.put_item(item)
        count += 1
    print(f"✅ Seeded {count} menu items")
    return count


def reset(ddb=None, ledger=None):
    ddb = ddb or dynamodb_resource()
    for table_name in (ORDERS_TABLE, INVENTORY_TABLE):
        clear_table(ddb, table_name)
    return seed_menu(ledger or StockLedger())


if __name__ == "__main__":
    reset()
