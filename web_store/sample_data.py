from .models import Product

DATABASE_NAME = "web_store"
COLLECTION_NAME = "products"

PRODUCTS = [
    Product(name="Apple iPhone 13 Pro Max", quantity=100, availability=True),
    Product(name="Samsung Galaxy S21 Ultra", quantity=150, availability=True),
    Product(name="Sony PlayStation 5", quantity=50, availability=True),
    Product(name="MacBook Pro 16-inch", quantity=80, availability=True),
    Product(name="Nike Air Zoom Pegasus 38 Running Shoes", quantity=200, availability=True),
    Product(name="Amazon Echo Dot (4th Gen)", quantity=120, availability=True),
    Product(name="Canon EOS R5 Mirrorless Camera", quantity=30, availability=True),
    Product(name="Nintendo Switch OLED Model", quantity=90, availability=True),
    Product(name="Dyson V11 Absolute Cordless Vacuum Cleaner", quantity=70, availability=True),
    Product(name="Bose QuietComfort 45 Wireless Headphones", quantity=110, availability=True),
    Product(name="Google Pixel 6 Pro", quantity=60, availability=True),
    Product(name="Rolex Submariner Date Watch", quantity=20, availability=True),
    Product(name="LG OLED C1 4K TV", quantity=40, availability=True),
    Product(name="LEGO Star Wars Millennium Falcon Set", quantity=180, availability=True),
    Product(name="Patagonia Nano Puff Jacket", quantity=130, availability=True),
]

UPDATED_QUANTITY = 20
