# shop_pricing/services/pricing_engine.py

from decimal import Decimal
from typing import List, NamedTuple, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..core.config import settings
from ..core.exceptions import NotFoundError, PriceUnavailableError
from ..core.logging import get_logger
from .discount_engine import resolve_discount
from .discount_tree import build_discount_forest
from .discount_types import (
    DiscountContext, DiscountGroup, PriceEntry, ResolutionResult, ResolvedPrice
)
from .price_resolver import resolve_price

logger = get_logger(__name__)


class TierSelection(NamedTuple):
    price_tier_id: Optional[str]
    default_tier_id: Optional[str]
    name: str
    reason: str

class PricingOutcome(NamedTuple):
    tier: TierSelection
    resolved: ResolvedPrice
    # None quando não há preço base (os descontos não são calculados)
    result: Optional[ResolutionResult]


class PricingEngine:
    """
    Liga a base de dados ao motor de preços puro: carrega utilizador, produto,
    linhas de preço e a floresta de descontos, e delega o cálculo em
    resolve_price / resolve_discount.
    """
    def __init__(self, db: Session):
        self.db = db

    # --- Carregamento ---

    def load_user(self, user_id: Optional[str]) -> Optional[models.User]:
        if user_id is None:
            return None
        user = crud.user.get_with_category(self.db, user_id=user_id)
        if not user:
            raise NotFoundError(f"User with id {user_id} not found.", details={"user_id": user_id})
        return user

    def load_product(self, product_id: str, modification_id: Optional[str] = None) -> models.Product:
        product = crud.product.get(self.db, id=product_id)
        if not product:
            raise NotFoundError(f"Product with id {product_id} not found.", details={"product_id": product_id})
        if modification_id is not None:
            modification = crud.modification.get_for_product(
                self.db, product_id=product_id, modification_id=modification_id
            )
            if not modification:
                raise NotFoundError(
                    f"Modification with id {modification_id} not found for product {product_id}.",
                    details={"product_id": product_id, "modification_id": modification_id},
                )
        return product

    def load_price_entries(self, product_id: str) -> List[PriceEntry]:
        """Linhas inválidas (ex: preço negativo) são ignoradas com um aviso, nunca quebram o pedido."""
        entries: List[PriceEntry] = []
        for row in crud.product_price.get_for_product(self.db, product_id=product_id):
            try:
                entries.append(PriceEntry.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    "invalid_price_row",
                    product_id=product_id,
                    price_row_id=getattr(row, "id", None),
                    errors=e.error_count(),
                )
        return entries

    def load_discount_forest(self, price_tier_id: Optional[str]) -> List[DiscountGroup]:
        """Os descontos estão associados a um tipo de preço; sem tipo, não há descontos."""
        if price_tier_id is None:
            return []
        discount_rows = crud.discount.get_for_price_type(self.db, price_type_id=price_tier_id)
        if not discount_rows:
            return []
        return build_discount_forest(crud.discount_group.get_all(self.db), discount_rows)

    # --- Regras de negócio ---

    def determine_price_tier(self, user: Optional[models.User]) -> TierSelection:
        """
        Implementa a regra para escolher o tipo de preço de quem pede:
        1. A categoria do utilizador aponta para um tipo de preço? Usa-o.
        2. Senão, usa o tipo de preço padrão do catálogo.
        """
        default = crud.price_type.get_default(self.db)
        default_id = default.id if default else None

        category = user.category if user else None
        if category and category.price_type_id and category.price_type:
            return TierSelection(
                price_tier_id=category.price_type_id,
                default_tier_id=default_id,
                name=category.price_type.name,
                reason=f'Category "{category.name}" -> price type "{category.price_type.name}"',
            )

        if default:
            who = "User without category" if user else "Guest"
            return TierSelection(
                price_tier_id=default.id,
                default_tier_id=default.id,
                name=default.name,
                reason=f'{who} -> default price type "{default.name}"',
            )

        return TierSelection(None, None, "", "No price type found")

    def build_context(
        self,
        *,
        user: Optional[models.User],
        product: models.Product,
        modification_id: Optional[str],
        quantity: int,
        base_price: Decimal,
        cart_total: Optional[Decimal] = None,
        existing_subtotal: Decimal = Decimal("0"),
    ) -> DiscountContext:
        # Sem total do carrinho explícito: o que já existe + esta linha ao preço base
        if cart_total is None:
            cart_total = existing_subtotal + base_price * quantity
        return DiscountContext(
            user_id=user.id if user else None,
            user_category_id=user.category_id if user else None,
            quantity=quantity,
            cart_total=cart_total,
            product_id=product.id,
            modification_id=modification_id,
            section_id=product.section_id,
            is_logged_in=user is not None,
        )

    def apply_discounts(
        self, base_price: Decimal, roots: List[DiscountGroup], ctx: DiscountContext
    ) -> ResolutionResult:
        return resolve_discount(
            base_price,
            roots,
            ctx,
            precision=settings.CURRENCY_PRECISION,
            max_depth=settings.DISCOUNT_TREE_MAX_DEPTH,
            fixed_price_wins=settings.FIXED_PRICE_OVERRIDES_AND_GROUP,
        )

    def price(
        self,
        *,
        user: Optional[models.User],
        product: models.Product,
        modification_id: Optional[str] = None,
        quantity: int = 1,
        cart_total: Optional[Decimal] = None,
        existing_subtotal: Decimal = Decimal("0"),
    ) -> PricingOutcome:
        """Tipo de preço -> preço base -> descontos, para utilizador/produto já carregados."""
        tier = self.determine_price_tier(user)
        resolved = resolve_price(
            self.load_price_entries(product.id),
            tier.price_tier_id,
            tier.default_tier_id,
            modification_id,
        )
        if resolved.price is None:
            return PricingOutcome(tier, resolved, None)

        ctx = self.build_context(
            user=user,
            product=product,
            modification_id=modification_id,
            quantity=quantity,
            base_price=resolved.price,
            cart_total=cart_total,
            existing_subtotal=existing_subtotal,
        )
        result = self.apply_discounts(resolved.price, self.load_discount_forest(tier.price_tier_id), ctx)
        return PricingOutcome(tier, resolved, result)

    def quote(self, request: schemas.PriceQuoteRequest) -> schemas.PriceQuote:
        """
        Preço final de um produto para a montra. Levanta PriceUnavailableError
        quando não existe preço: nunca assume zero.
        """
        user = self.load_user(request.user_id)
        product = self.load_product(request.product_id, request.modification_id)
        outcome = self.price(
            user=user,
            product=product,
            modification_id=request.modification_id,
            quantity=request.quantity,
            cart_total=request.cart_total,
        )
        if outcome.result is None:
            raise PriceUnavailableError(
                f"No price available for product {product.id}.",
                details={"product_id": product.id, "modification_id": request.modification_id},
            )

        return schemas.PriceQuote(
            product_id=product.id,
            modification_id=request.modification_id,
            price_tier_id=outcome.tier.price_tier_id,
            base_price=outcome.resolved.price,
            old_price=outcome.resolved.old_price,
            final_price=outcome.result.final_price,
            total_discount=outcome.result.total_discount,
            applied_discounts=outcome.result.applied_discounts,
        )

    def validate(self, request: schemas.PriceValidationRequest) -> schemas.PriceValidationReport:
        """
        "Validador de preços" do admin: o mesmo cálculo de quote(), mas
        devolvido passo a passo, com os descontos aplicados e rejeitados
        (e o motivo de cada rejeição). Um preço em falta é um passo com erro,
        não uma exceção.
        """
        user = self.load_user(request.user_id)
        product = self.load_product(request.product_id, request.modification_id)
        outcome = self.price(
            user=user,
            product=product,
            modification_id=request.modification_id,
            quantity=request.quantity,
            cart_total=request.cart_total,
        )
        tier, resolved, result = outcome
        steps: List[schemas.ValidationStep] = []

        # Passo 1: tipo de preço
        steps.append(schemas.ValidationStep(
            title="Price type",
            value=tier.name or "Not determined",
            reason=tier.reason,
            status=schemas.StepStatus.OK if tier.price_tier_id else schemas.StepStatus.ERROR,
        ))

        # Passo 2: preço base
        scope = "modification" if request.modification_id else "product"
        steps.append(schemas.ValidationStep(
            title="Base price",
            value=f"{resolved.price:.2f}" if resolved.price is not None else "Not found",
            reason=(
                f'product_prices (price type "{tier.name}", {scope})'
                if resolved.price is not None else "No price for this price type"
            ),
            status=schemas.StepStatus.OK if resolved.price is not None else schemas.StepStatus.ERROR,
            old_price=resolved.old_price,
        ))

        report = schemas.PriceValidationReport(
            product_id=product.id,
            price_tier_id=tier.price_tier_id,
            base_price=resolved.price,
        )
        if result is None:
            report.steps = steps
            return report

        # Passo 3: descontos
        if not result.applied_discounts and not result.rejected_discounts:
            discounts_reason = "No discounts configured for this price type"
        elif result.applied_discounts:
            discounts_reason = f"{len(result.applied_discounts)} discount(s) applied"
        else:
            discounts_reason = "No discount applies"
        steps.append(schemas.ValidationStep(
            title="Discounts",
            value=f"-{result.total_discount:.2f}" if result.total_discount > 0 else "None",
            reason=discounts_reason,
            status=schemas.StepStatus.INFO,
            applied=result.applied_discounts,
            rejected=result.rejected_discounts,
        ))

        # Passo 4: preço final
        steps.append(schemas.ValidationStep(
            title="Final price",
            value=f"{result.final_price:.2f}",
            reason=(
                f"{resolved.price:.2f} - {result.total_discount:.2f} = {result.final_price:.2f}"
                if result.total_discount > 0 else f"No discount: {resolved.price:.2f}"
            ),
            status=schemas.StepStatus.OK,
        ))

        logger.info(
            "price_validated",
            product_id=product.id,
            user_id=request.user_id,
            final_price=str(result.final_price),
            applied=len(result.applied_discounts),
            rejected=len(result.rejected_discounts),
        )
        report.steps = steps
        report.final_price = result.final_price
        return report
