"""
Starter menu written into a freshly bootstrapped document.

After bootstrap the menu is only read from the store; edit the data
file to change prices or stock.
"""

STARTER_MENU: list[dict] = [
    {"id": "m1", "name": "Classic Masala Maggi", "category": "Maggi", "price": 45, "inStock": True},
    {"id": "m2", "name": "Cheese Maggi", "category": "Maggi", "price": 65, "inStock": True},
    {"id": "m3", "name": "Egg Maggi", "category": "Maggi", "price": 70, "inStock": True},
    {"id": "d1", "name": "Coca-Cola (500ml)", "category": "Cold Drinks", "price": 40, "inStock": True},
    {"id": "d2", "name": "Sprite (500ml)", "category": "Cold Drinks", "price": 40, "inStock": True},
    {"id": "d3", "name": "Cold Coffee", "category": "Cold Drinks", "price": 55, "inStock": True},
    {"id": "s1", "name": "Salted Chips", "category": "Snacks", "price": 25, "inStock": True},
    {"id": "s2", "name": "Aloo Bhujia", "category": "Snacks", "price": 30, "inStock": True},
    {"id": "s3", "name": "Nachos", "category": "Snacks", "price": 45, "inStock": True},
    {"id": "b1", "name": "Parle-G Biscuit", "category": "Biscuits", "price": 10, "inStock": True},
    {"id": "b2", "name": "Oreo Biscuit", "category": "Biscuits", "price": 30, "inStock": True},
]
