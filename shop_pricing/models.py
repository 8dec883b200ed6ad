# shop_pricing/models.py

import uuid
from sqlalchemy import (
    Column, Integer, String, Boolean, DECIMAL, DateTime, ForeignKey, JSON
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def new_id() -> str:
    return str(uuid.uuid4())

# --- TIPOS DE PREÇO E CATEGORIAS DE UTILIZADOR ---

class PriceType(Base):
    __tablename__ = "price_types"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    # Apenas um tipo de preço deve ser o padrão do catálogo
    is_default = Column(Boolean, nullable=False, default=False)

class UserCategory(Base):
    __tablename__ = "user_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    price_type_id = Column(String(36), ForeignKey("price_types.id"), nullable=True)

    price_type = relationship("PriceType")

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    category_id = Column(String(36), ForeignKey("user_categories.id"), nullable=True)

    category = relationship("UserCategory")
    orders = relationship("Order", back_populates="owner")

# --- CATÁLOGO ---

class Section(Base):
    __tablename__ = "sections"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)

class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    section_id = Column(String(36), ForeignKey("sections.id"), nullable=True)
    has_modifications = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    section = relationship("Section")
    modifications = relationship("ProductModification", back_populates="product")
    prices = relationship("ProductPrice", back_populates="product")

class ProductModification(Base):
    __tablename__ = "product_modifications"

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    name = Column(String(255), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="modifications")

class ProductPrice(Base):
    __tablename__ = "product_prices"

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    # NULL = preço do produto simples, não de uma modificação
    modification_id = Column(String(36), ForeignKey("product_modifications.id"), nullable=True)
    price_type_id = Column(String(36), ForeignKey("price_types.id"), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    old_price = Column(DECIMAL(10, 2), nullable=True)

    product = relationship("Product", back_populates="prices")

# --- DESCONTOS ---

class DiscountGroup(Base):
    __tablename__ = "discount_groups"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    operator = Column(String(10), nullable=False, default="and")
    is_active = Column(Boolean, nullable=False, default=True)
    priority = Column(Integer, nullable=False, default=0)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    parent_group_id = Column(String(36), ForeignKey("discount_groups.id"), nullable=True)

    discounts = relationship("Discount", back_populates="group")

class Discount(Base):
    __tablename__ = "discounts"

    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey("discount_groups.id"), nullable=False)
    price_type_id = Column(String(36), ForeignKey("price_types.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(DECIMAL(10, 2), nullable=False)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)

    group = relationship("DiscountGroup", back_populates="discounts")
    targets = relationship("DiscountTarget", cascade="all, delete-orphan")
    conditions = relationship("DiscountCondition", cascade="all, delete-orphan")

class DiscountTarget(Base):
    __tablename__ = "discount_targets"

    id = Column(String(36), primary_key=True, default=new_id)
    discount_id = Column(String(36), ForeignKey("discounts.id"), nullable=False)
    target_type = Column(String(20), nullable=False)
    target_id = Column(String(36), nullable=True)

class DiscountCondition(Base):
    __tablename__ = "discount_conditions"

    id = Column(String(36), primary_key=True, default=new_id)
    discount_id = Column(String(36), ForeignKey("discounts.id"), nullable=False)
    condition_type = Column(String(50), nullable=False)
    operator = Column(String(10), nullable=False)
    # Lista de ids, número ou booleano, conforme o condition_type
    value = Column(JSON, nullable=True)

# --- ENCOMENDAS ---

class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    # NULL para encomendas de convidados
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    status = Column(String(50), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    modification_id = Column(String(36), ForeignKey("product_modifications.id"), nullable=True)
    quantity = Column(Integer, nullable=False)
    base_price = Column(DECIMAL(10, 2), nullable=False)
    # Preço unitário final, "congelado" no momento da encomenda
    price = Column(DECIMAL(10, 2), nullable=False)
    # Registo de auditoria dos descontos aplicados
    discount_data = Column(JSON, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
