from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..core.exceptions import NotFoundError, OrderPricingError, PricingError
from ..core.logging import get_logger
from .discount_types import ResolutionResult
from .pricing_engine import PricingEngine

logger = get_logger(__name__)


def discount_audit_record(result: ResolutionResult) -> dict:
    """O que fica guardado em order_items.discount_data (JSON)."""
    return schemas.DiscountData(
        total_discount=result.total_discount,
        applied_discounts=result.applied_discounts,
    ).model_dump(mode="json")


class OrderService:
    def __init__(self, db: Session):
        # O serviço recebe a sessão do banco ao ser instanciado
        self.db = db
        self.pricing_engine = PricingEngine(db)

    def _get_order(self, order_id: str) -> models.Order:
        db_order = crud.order.get_with_items(self.db, order_id=order_id)
        if not db_order:
            raise NotFoundError(f"Order with id {order_id} not found.", details={"order_id": order_id})
        return db_order

    def _subtotal(self, db_order: models.Order, *, exclude_item_id: str | None = None) -> Decimal:
        """Soma dos itens já existentes, a preço base (o total do carrinho antes de descontos)."""
        return sum(
            (item.base_price * item.quantity for item in db_order.items if item.id != exclude_item_id),
            Decimal("0"),
        )

    def _price_line(
        self, db_order: models.Order, *, product_id: str, modification_id: str | None,
        quantity: int, existing_subtotal: Decimal,
    ):
        user = self.pricing_engine.load_user(db_order.user_id)
        product = self.pricing_engine.load_product(product_id, modification_id)
        outcome = self.pricing_engine.price(
            user=user,
            product=product,
            modification_id=modification_id,
            quantity=quantity,
            existing_subtotal=existing_subtotal,
        )
        if outcome.result is None:
            raise OrderPricingError(
                f"No price available for product '{product.name}'.",
                details={"product_id": product_id, "modification_id": modification_id},
            )
        return outcome

    def add_item(self, *, order_id: str, item_in: schemas.OrderItemCreate) -> models.OrderItem:
        """
        Adiciona uma linha à encomenda com o preço calculado pelo motor e
        guarda o registo dos descontos aplicados para auditoria.
        """
        db_order = self._get_order(order_id)

        try:
            outcome = self._price_line(
                db_order,
                product_id=item_in.product_id,
                modification_id=item_in.modification_id,
                quantity=item_in.quantity,
                existing_subtotal=self._subtotal(db_order),
            )
            db_item = crud.create_order_item(
                self.db,
                order_id=db_order.id,
                product_id=item_in.product_id,
                modification_id=item_in.modification_id,
                quantity=item_in.quantity,
                base_price=outcome.resolved.price,
                price=outcome.result.final_price,
                discount_data=discount_audit_record(outcome.result),
            )
            self.db.commit()
            self.db.refresh(db_item)
        except PricingError:
            # Erros de negócio e de estrutura seguem para o router tal como estão
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise OrderPricingError(f"An unexpected error occurred while adding the item: {e}")

        logger.info(
            "order_item_added",
            order_id=db_order.id,
            item_id=db_item.id,
            price=str(db_item.price),
            total_discount=str(outcome.result.total_discount),
        )
        return db_item

    def reprice_item(self, *, order_id: str, item_id: str, item_update: schemas.OrderItemUpdate) -> models.OrderItem:
        """
        Altera a quantidade de uma linha e recalcula o seu preço (a quantidade
        e o total do carrinho podem mudar quais descontos se aplicam).
        """
        db_order = self._get_order(order_id)
        db_item = crud.get_order_item(self.db, order_id=order_id, item_id=item_id)
        if not db_item:
            raise NotFoundError(
                f"Item with id {item_id} not found in order {order_id}.",
                details={"order_id": order_id, "item_id": item_id},
            )

        try:
            outcome = self._price_line(
                db_order,
                product_id=db_item.product_id,
                modification_id=db_item.modification_id,
                quantity=item_update.quantity,
                existing_subtotal=self._subtotal(db_order, exclude_item_id=db_item.id),
            )
            crud.order_item.update(self.db, db_obj=db_item, obj_in={
                "quantity": item_update.quantity,
                "base_price": outcome.resolved.price,
                "price": outcome.result.final_price,
                "discount_data": discount_audit_record(outcome.result),
            })
            self.db.commit()
            self.db.refresh(db_item)
        except PricingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise OrderPricingError(f"An unexpected error occurred while repricing the item: {e}")

        logger.info("order_item_repriced", order_id=order_id, item_id=item_id, price=str(db_item.price))
        return db_item
