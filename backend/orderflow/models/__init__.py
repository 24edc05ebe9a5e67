"""Import every model so Base.metadata knows about all tables."""

from .order import Order, OrderItem, OrderStatus  # noqa: F401
from .kitchen_ticket import KitchenTicket, TicketStatus  # noqa: F401
from .bill import Bill, BillStatus, PaymentMethod  # noqa: F401
from .analytics import OrderFact, OrderItemFact, BillFact  # noqa: F401
