"""
Built-in demo data for the Gemini Shop storefront.

Used whenever no store data file is configured.
"""

from .store import Order, OrderStatus, Policy, Product, StoreSnapshot

MOCK_PRODUCTS: tuple[Product, ...] = (
    Product(
        id="p1",
        name="Ultra-Comfort 无线降噪耳机",
        price=199.99,
        category="电子产品",
        description="40小时续航的高品质降噪耳机。",
        stock=15,
    ),
    Product(
        id="p2",
        name="智能运动手表 Series 5",
        price=249.00,
        category="电子产品",
        description="带OLED屏幕，支持心率、步数和睡眠监测。",
        stock=8,
    ),
    Product(
        id="p3",
        name="人体工学网眼办公椅",
        price=349.50,
        category="家具",
        description="透气网眼靠背，带腰部支撑。",
        stock=12,
    ),
    Product(
        id="p4",
        name="不锈钢保温水杯 (1L)",
        price=25.00,
        category="生活方式",
        description="环保不锈钢材质，24小时长效保冷。",
        stock=50,
    ),
)

MOCK_ORDERS: tuple[Order, ...] = (
    Order(
        id="ORD-1001",
        customer_name="张三",
        items=("p1", "p4"),
        status=OrderStatus.SHIPPED,
        estimated_delivery="2023-11-20",
    ),
    Order(id="ORD-1002", customer_name="李四", items=("p2",), status=OrderStatus.PROCESSING),
    Order(id="ORD-1003", customer_name="王五", items=("p3",), status=OrderStatus.DELIVERED),
)

KNOWLEDGE_BASE: tuple[Policy, ...] = (
    Policy(topic="退货政策", content="您可以在购买后30天内退还任何产品。物品必须保留原始包装。"),
    Policy(topic="物流配送", content="订单满$50免标准运费。特快专递通常需要1-2个工作日。"),
    Policy(topic="保修服务", content="所有电子产品均享有一年有限制造商保修。"),
)


def demo_snapshot() -> StoreSnapshot:
    """Snapshot holding the demo catalog, order book and policies."""
    return StoreSnapshot.build(
        policies=KNOWLEDGE_BASE,
        products=MOCK_PRODUCTS,
        orders=MOCK_ORDERS,
    )
