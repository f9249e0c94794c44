"""内存数据集 / 迁移脚本使用的初始商品数据"""

from decimal import Decimal

PRODUCTS = [
    {
        "id": 1,
        "name": "Wireless Noise-Canceling Headphones",
        "price": Decimal("199.99"),
        "description": "Premium over-ear headphones with active noise cancellation and 30-hour battery life.",
        "category": "Electronics",
        "image_url": "https://placehold.co/400",
        "stock": 25,
    },
    {
        "id": 2,
        "name": "Minimalist Leather Watch",
        "price": Decimal("125.00"),
        "description": "Elegant stainless steel watch with a genuine Italian leather strap.",
        "category": "Accessories",
        "image_url": "https://placehold.co/400",
        "stock": 40,
    },
    {
        "id": 3,
        "name": "Smart Fitness Tracker",
        "price": Decimal("79.50"),
        "description": "Track your steps, heart rate, and sleep with this sleek, waterproof fitness band.",
        "category": "Electronics",
        "image_url": "https://placehold.co/400",
        "stock": 60,
    },
    {
        "id": 4,
        "name": "Organic Cotton Hoodie",
        "price": Decimal("55.00"),
        "description": "Soft and sustainable hoodie made from 100% certified organic cotton.",
        "category": "Apparel",
        "image_url": "https://placehold.co/400",
        "stock": 80,
    },
    {
        "id": 5,
        "name": "Portable Bluetooth Speaker",
        "price": Decimal("45.99"),
        "description": "Compact speaker with rich bass and IPX7 waterproof rating for outdoor use.",
        "category": "Electronics",
        "image_url": "https://placehold.co/400",
        "stock": 35,
    },
    {
        "id": 6,
        "name": "Ergonomic Mechanical Keyboard",
        "price": Decimal("149.00"),
        "description": "Tactile mechanical switches and customizable RGB lighting for the ultimate typing experience.",
        "category": "Electronics",
        "image_url": "https://placehold.co/400",
        "stock": 15,
    },
]
