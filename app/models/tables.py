# backend/app/models/tables.py
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime, Numeric, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    # ID клиента Shopify, не автоинкремент
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    email = Column(String, nullable=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    currency = Column(String, nullable=True)
    tags = Column(String, nullable=True)
    note = Column(Text, nullable=True)
    state = Column(String, nullable=True)
    accepts_marketing = Column(Boolean, nullable=True)
    verified_email = Column(Boolean, nullable=True)
    tax_exempt = Column(Boolean, nullable=True)
    orders_count = Column(Integer, nullable=True)
    total_spent = Column(String, nullable=True)  # Shopify отдает суммы строками
    last_order_id = Column(BigInteger, nullable=True)
    last_order_name = Column(String, nullable=True)
    shopify_created_at = Column(DateTime(timezone=True), nullable=True)
    shopify_updated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Order(Base):
    __tablename__ = "orders"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    customer_id = Column(BigInteger, nullable=True, index=True)  # мягкая ссылка на users.id
    customer_email = Column(String, nullable=True)
    purchase_date = Column(DateTime(timezone=True), nullable=False)
    total_amount = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    currency = Column(String, nullable=True)
    line_items = Column(JSON, nullable=False)  # нормализованные позиции заказа
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserSkuQuantity(Base):
    __tablename__ = "user_sku_quantities"

    # Одна строка на пользователя; bot_id - атрибут строки
    user_id = Column(BigInteger, primary_key=True, autoincrement=False)
    sku_quantity = Column(Integer, nullable=True)
    last_purchase_date = Column(DateTime(timezone=True), nullable=True)
    bot_id = Column(String, nullable=True, index=True)
