"""Marketplace schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates: profiles, products, product_price_tiers, orders, order_items,
         order_payments, notifications
Enums: userrole, orderitemstatus, deliveryoption, notificationtype
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # ── 1. Enum types (SQLAlchemy persists enum member names) ─────────────
    op.execute("CREATE TYPE userrole AS ENUM ('RESTAURANT', 'SUPPLIER', 'ADMIN');")
    op.execute("""
        CREATE TYPE orderitemstatus AS ENUM (
            'PENDING', 'CONFIRMED', 'PREPARING', 'SHIPPED', 'DELIVERED', 'CANCELLED'
        );
    """)
    op.execute("CREATE TYPE deliveryoption AS ENUM ('WITH_FEE', 'MINIMUM_ONLY', 'NO_DELIVERY');")
    op.execute("CREATE TYPE notificationtype AS ENUM ('ORDER', 'STATUS_UPDATE', 'PAYMENT');")

    # ── 2. profiles ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE profiles (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL,
            role userrole NOT NULL,
            business_name VARCHAR(255) NOT NULL,
            full_name VARCHAR(255) NOT NULL,
            phone VARCHAR(30),
            city VARCHAR(100),
            is_approved BOOLEAN NOT NULL DEFAULT false,
            bank_name VARCHAR(255),
            bank_account_name VARCHAR(255),
            bank_iban VARCHAR(34),
            delivery_option deliveryoption,
            minimum_order_amount NUMERIC(12, 2),
            default_delivery_fee NUMERIC(12, 2),
            google_maps_url VARCHAR(500),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_profiles_user_id UNIQUE (user_id)
        );
    """)
    op.execute("CREATE INDEX ix_profiles_role ON profiles (role);")

    # ── 3. products ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE products (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            supplier_id UUID NOT NULL,
            name VARCHAR(255) NOT NULL,
            sku VARCHAR(100),
            unit VARCHAR(30) NOT NULL DEFAULT 'unit',
            price NUMERIC(12, 2) NOT NULL CHECK (price > 0),
            delivery_fee NUMERIC(12, 2),
            is_available BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_products_supplier_id ON products (supplier_id);")

    # ── 4. product_price_tiers ────────────────────────────────────────────
    op.execute("""
        CREATE TABLE product_price_tiers (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            product_id UUID NOT NULL REFERENCES products(id) ON DELETE CASCADE,
            min_quantity INTEGER NOT NULL CHECK (min_quantity >= 1),
            price_per_unit NUMERIC(12, 2) NOT NULL CHECK (price_per_unit > 0),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_price_tiers_product_min_qty UNIQUE (product_id, min_quantity)
        );
    """)

    # ── 5. orders ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE orders (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            restaurant_id UUID NOT NULL,
            total_amount NUMERIC(15, 2) NOT NULL,
            delivery_fee NUMERIC(12, 2) NOT NULL DEFAULT 0,
            status orderitemstatus NOT NULL DEFAULT 'PENDING',
            status_source_supplier_id UUID,
            status_updated_at TIMESTAMPTZ,
            is_pickup BOOLEAN NOT NULL DEFAULT false,
            branch_id UUID,
            delivery_address VARCHAR(500),
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_orders_restaurant_id ON orders (restaurant_id);")
    op.execute("CREATE INDEX ix_orders_is_pickup ON orders (is_pickup);")
    op.execute("""
        COMMENT ON COLUMN orders.status IS
        'Advisory: mirrors the latest supplier bulk transition, not a cross-supplier consensus';
    """)

    # ── 6. order_items ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE order_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            product_id UUID NOT NULL REFERENCES products(id) ON DELETE RESTRICT,
            supplier_id UUID NOT NULL,
            quantity INTEGER NOT NULL CHECK (quantity > 0),
            unit_price NUMERIC(12, 2) NOT NULL,
            delivery_fee NUMERIC(12, 2) NOT NULL DEFAULT 0,
            status orderitemstatus NOT NULL DEFAULT 'PENDING',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_order_items_order_id ON order_items (order_id);")
    op.execute("CREATE INDEX ix_order_items_supplier_id ON order_items (supplier_id);")

    # ── 7. order_payments ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE order_payments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID REFERENCES orders(id) ON DELETE CASCADE,
            supplier_id UUID NOT NULL,
            restaurant_id UUID NOT NULL,
            is_paid BOOLEAN NOT NULL DEFAULT false,
            receipt_url VARCHAR(1000),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_order_payments_order_supplier UNIQUE (order_id, supplier_id)
        );
    """)
    op.execute("CREATE INDEX ix_order_payments_supplier_id ON order_payments (supplier_id);")
    op.execute("CREATE INDEX ix_order_payments_restaurant_id ON order_payments (restaurant_id);")

    # ── 8. notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL,
            title VARCHAR(255) NOT NULL,
            message TEXT NOT NULL,
            type notificationtype NOT NULL,
            order_id UUID REFERENCES orders(id) ON DELETE CASCADE,
            is_read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_notifications_user_id ON notifications (user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications;")
    op.execute("DROP TABLE IF EXISTS order_payments;")
    op.execute("DROP TABLE IF EXISTS order_items;")
    op.execute("DROP TABLE IF EXISTS orders;")
    op.execute("DROP TABLE IF EXISTS product_price_tiers;")
    op.execute("DROP TABLE IF EXISTS products;")
    op.execute("DROP TABLE IF EXISTS profiles;")
    op.execute("DROP TYPE IF EXISTS notificationtype;")
    op.execute("DROP TYPE IF EXISTS deliveryoption;")
    op.execute("DROP TYPE IF EXISTS orderitemstatus;")
    op.execute("DROP TYPE IF EXISTS userrole;")
