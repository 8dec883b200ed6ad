# shop_pricing/services/discount_engine.py
#
# Motor de resolução de descontos. Função pura sobre os seus argumentos:
# não acede à base de dados nem guarda estado. Problemas de dados num desconto nunca
# levantam exceções; o desconto é rejeitado com um motivo legível.

import operator as op
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import List, NamedTuple, Optional, Sequence

from ..core.exceptions import DiscountStructureError
from ..core.logging import get_logger
from .discount_types import (
    AppliedDiscount,
    Discount,
    DiscountCondition,
    DiscountContext,
    DiscountEligibility,
    DiscountGroup,
    DiscountTarget,
    DiscountType,
    GroupOperator,
    GroupOutcome,
    MinOrderAmountCondition,
    MinQuantityCondition,
    RejectedDiscount,
    ResolutionResult,
    TargetType,
    UnrecognizedCondition,
    UserCategoryCondition,
    UserLoggedInCondition,
    as_utc,
)

logger = get_logger(__name__)

DEFAULT_PRECISION = Decimal("0.01")
DEFAULT_MAX_DEPTH = 32

# --- Motivos de rejeição (legíveis por máquina) ---
REASON_INACTIVE = "inactive"
REASON_NOT_STARTED = "not yet started"
REASON_EXPIRED = "expired"
REASON_TARGET_MISMATCH = "target mismatch"
REASON_OR_SUPERSEDED = "superseded by higher-priority discount in OR group"
REASON_NOT_MINIMUM = "not the minimum in MIN group"
REASON_NOT_MAXIMUM = "not the maximum in MAX group"
REASON_FIXED_PRICE_OVERRIDE = "overridden by fixed price in AND group"


def condition_not_met_reason(condition_type: str) -> str:
    return f"condition not met: {condition_type}"

def unrecognized_condition_reason(condition_type: str) -> str:
    return f"unrecognized condition: {condition_type}"

def unknown_discount_type_reason(discount_type: str) -> str:
    return f"unknown discount type: {discount_type}"

def unknown_operator_reason(group_operator: str) -> str:
    return f"unknown group operator: {group_operator}"

def invalid_discount_reason(detail: str) -> str:
    return f"invalid discount: {detail}"


_COMPARATORS = {
    ">=": op.ge,
    ">": op.gt,
    "=": op.eq,
    "<=": op.le,
    "<": op.lt,
}

_KNOWN_DISCOUNT_TYPES = {t.value for t in DiscountType}


def to_money(value) -> Decimal:
    """Converte int/float/str para Decimal sem passar pela representação binária do float."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def quantize(amount: Decimal, precision: Decimal = DEFAULT_PRECISION) -> Decimal:
    return amount.quantize(precision, rounding=ROUND_HALF_UP)

def _clamp(amount: Decimal, upper: Decimal) -> Decimal:
    return max(Decimal("0"), min(amount, upper))

# --- Condições ---

def _compare(actual, comparison: str, expected: Decimal) -> bool:
    compare = _COMPARATORS.get(comparison)
    if compare is None:
        logger.warning("unknown_comparison_operator", operator=comparison)
        return False
    return compare(to_money(actual), expected)


def evaluate_condition(condition: DiscountCondition, ctx: DiscountContext) -> bool:
    """
    Avalia uma única condição de elegibilidade contra o contexto do pedido.
    Condições desconhecidas falham sempre (fail closed) e geram um aviso no log.
    """
    if isinstance(condition, UserCategoryCondition):
        return ctx.user_category_id is not None and ctx.user_category_id in condition.value
    if isinstance(condition, MinQuantityCondition):
        return _compare(ctx.quantity, condition.operator, condition.value)
    if isinstance(condition, MinOrderAmountCondition):
        return _compare(ctx.cart_total, condition.operator, condition.value)
    if isinstance(condition, UserLoggedInCondition):
        return ctx.is_logged_in == condition.value

    logger.warning(
        "unrecognized_condition",
        condition_type=getattr(condition, "condition_type", None),
        detail=getattr(condition, "detail", ""),
    )
    return False

# --- Alvos ---

def matches_target(target: DiscountTarget, ctx: DiscountContext) -> bool:
    if target.target_type == TargetType.ALL:
        return True
    if target.target_type == TargetType.PRODUCT:
        return target.target_id is not None and target.target_id == ctx.product_id
    if target.target_type == TargetType.MODIFICATION:
        # Um desconto de modificação nunca se aplica a um produto simples
        return target.target_id is not None and target.target_id == ctx.modification_id
    if target.target_type == TargetType.SECTION:
        return target.target_id is not None and target.target_id == ctx.section_id

    logger.warning("unknown_target_type", target_type=target.target_type, target_id=target.target_id)
    return False

# --- Desconto individual ---

def _window_reason(item, now: datetime) -> Optional[str]:
    if item.starts_at is not None and now < item.starts_at:
        return REASON_NOT_STARTED
    if item.ends_at is not None and now > item.ends_at:
        return REASON_EXPIRED
    return None


def evaluate_discount(discount: Discount, ctx: DiscountContext, now: datetime) -> DiscountEligibility:
    """
    Verifica se um desconto se aplica ao contexto. Para na primeira falha,
    pela ordem: linha válida, ativo, início, fim, alvos, condições. O motivo
    devolvido é o da primeira verificação que falhou.
    """
    now = as_utc(now)

    if discount.invalid is not None:
        return DiscountEligibility(eligible=False, reason=invalid_discount_reason(discount.invalid))

    if not discount.is_active:
        return DiscountEligibility(eligible=False, reason=REASON_INACTIVE)

    window_reason = _window_reason(discount, now)
    if window_reason:
        return DiscountEligibility(eligible=False, reason=window_reason)

    # Sem alvos = aplica-se a todos os produtos
    if discount.targets and not any(matches_target(t, ctx) for t in discount.targets):
        return DiscountEligibility(eligible=False, reason=REASON_TARGET_MISMATCH)

    for condition in discount.conditions:
        if isinstance(condition, UnrecognizedCondition):
            evaluate_condition(condition, ctx)  # regista o aviso
            return DiscountEligibility(
                eligible=False, reason=unrecognized_condition_reason(condition.condition_type)
            )
        if not evaluate_condition(condition, ctx):
            return DiscountEligibility(
                eligible=False, reason=condition_not_met_reason(condition.condition_type)
            )

    if discount.discount_type not in _KNOWN_DISCOUNT_TYPES:
        logger.warning("unknown_discount_type", discount_id=discount.id, discount_type=discount.discount_type)
        return DiscountEligibility(eligible=False, reason=unknown_discount_type_reason(discount.discount_type))

    return DiscountEligibility(eligible=True)


def calculate_discount_amount(
    discount: Discount, base_price, precision: Decimal = DEFAULT_PRECISION
) -> Decimal:
    """
    Calcula a redução monetária de um desconto sobre o preço base.
    O resultado fica sempre entre 0 e o preço base.
    - percent: base * valor / 100
    - fixed_amount: o próprio valor
    - fixed_price: o valor é o preço final pretendido; a redução é base - valor.
      Um preço pretendido igual ou acima da base é tratado como configuração
      inválida e a redução é a base inteira (preço final 0, nunca negativo).
    """
    base = to_money(base_price)
    value = to_money(discount.discount_value)

    if discount.discount_type == DiscountType.PERCENT:
        amount = base * value / Decimal("100")
    elif discount.discount_type == DiscountType.FIXED_AMOUNT:
        amount = value
    elif discount.discount_type == DiscountType.FIXED_PRICE:
        amount = base if value >= base else base - value
    else:
        amount = Decimal("0")

    return _clamp(quantize(amount, precision), base)

# --- Grupos ---

class _PoolItem(NamedTuple):
    priority: int
    amount: Decimal
    applied: List[AppliedDiscount]
    is_leaf: bool
    discount_type: Optional[str] = None


def _select(pool: List[_PoolItem], group_operator: str):
    """Devolve (selecionados, preteridos, motivo para os preteridos)."""
    if not pool:
        return [], [], None

    if group_operator in (GroupOperator.AND, GroupOperator.NOT):
        # TODO: confirmar com o produto a semântica de NOT; por agora acumula como AND
        return list(pool), [], None

    if group_operator == GroupOperator.OR:
        winner = next((item for item in pool if item.amount > 0), pool[0])
        reason = REASON_OR_SUPERSEDED
    elif group_operator == GroupOperator.MIN:
        non_zero = [item for item in pool if item.amount > 0]
        winner = min(non_zero, key=lambda item: item.amount) if non_zero else pool[0]
        reason = REASON_NOT_MINIMUM
    elif group_operator == GroupOperator.MAX:
        winner = max(pool, key=lambda item: item.amount)
        reason = REASON_NOT_MAXIMUM
    else:
        logger.warning("unknown_group_operator", operator=group_operator)
        return [], list(pool), unknown_operator_reason(group_operator)

    losers = [item for item in pool if item is not winner]
    return [winner], losers, reason


def _reject_records(records: Sequence[AppliedDiscount], group_name: str, reason: str) -> List[RejectedDiscount]:
    return [
        RejectedDiscount(id=record.id, name=record.name, group_name=group_name, reason=reason)
        for record in records
    ]


def evaluate_group(
    group: DiscountGroup,
    base_price,
    ctx: DiscountContext,
    now: datetime,
    *,
    precision: Decimal = DEFAULT_PRECISION,
    max_depth: int = DEFAULT_MAX_DEPTH,
    fixed_price_wins: bool = False,
    _depth: int = 0,
) -> GroupOutcome:
    """
    Avalia recursivamente um grupo de descontos.

    Os descontos diretos e os subgrupos são avaliados contra o MESMO preço base
    e juntados numa lista ordenada por prioridade (menor primeiro). O operador
    do grupo decide quais contam:
    - and / not: somam-se todos
    - or: o primeiro com valor não nulo
    - min: o menor valor não nulo
    - max: o maior valor
    Um grupo inativo ou fora da janela de validade é ignorado com toda a subárvore.
    """
    if _depth > max_depth:
        logger.error("discount_tree_too_deep", group_id=group.id, max_depth=max_depth)
        raise DiscountStructureError(
            f"Discount group '{group.name}' exceeds the maximum nesting depth of {max_depth}; "
            "the group forest probably contains a cycle.",
            details={"group_id": group.id, "max_depth": max_depth},
        )

    base = to_money(base_price)
    now = as_utc(now)

    if not group.is_active or _window_reason(group, now):
        return GroupOutcome()

    pool: List[_PoolItem] = []
    rejected: List[RejectedDiscount] = []

    for discount in sorted(group.discounts, key=lambda d: d.priority):
        eligibility = evaluate_discount(discount, ctx, now)
        if not eligibility.eligible:
            rejected.append(RejectedDiscount(
                id=discount.id, name=discount.name, group_name=group.name, reason=eligibility.reason
            ))
            continue
        amount = calculate_discount_amount(discount, base, precision)
        record = AppliedDiscount(
            id=discount.id,
            name=discount.name,
            type=discount.discount_type,
            value=discount.discount_value,
            calculated_amount=amount,
            group_name=group.name,
        )
        pool.append(_PoolItem(discount.priority, amount, [record], True, discount.discount_type))

    for child in sorted(group.children, key=lambda g: g.priority):
        outcome = evaluate_group(
            child, base, ctx, now,
            precision=precision,
            max_depth=max_depth,
            fixed_price_wins=fixed_price_wins,
            _depth=_depth + 1,
        )
        rejected.extend(outcome.rejected)
        if outcome.applied:
            pool.append(_PoolItem(child.priority, outcome.discount_amount, list(outcome.applied), False))

    # sort() é estável: empates mantêm a ordem (descontos diretos antes dos subgrupos)
    pool.sort(key=lambda item: item.priority)

    selected, losers, reason = _select(pool, group.operator)

    if fixed_price_wins and group.operator == GroupOperator.AND:
        fixed = next(
            (item for item in selected if item.is_leaf and item.discount_type == DiscountType.FIXED_PRICE),
            None,
        )
        if fixed is not None:
            losers = [item for item in selected if item is not fixed]
            selected = [fixed]
            reason = REASON_FIXED_PRICE_OVERRIDE

    applied: List[AppliedDiscount] = []
    for item in selected:
        applied.extend(item.applied)
    for item in losers:
        rejected.extend(_reject_records(item.applied, group.name, reason))

    amount = sum((item.amount for item in selected), Decimal("0"))
    return GroupOutcome(discount_amount=_clamp(amount, base), applied=applied, rejected=rejected)

# --- Ponto de entrada ---

def resolve_discount(
    base_price,
    roots: Sequence[DiscountGroup],
    ctx: DiscountContext,
    now: Optional[datetime] = None,
    *,
    precision: Decimal = DEFAULT_PRECISION,
    max_depth: int = DEFAULT_MAX_DEPTH,
    fixed_price_wins: bool = False,
) -> ResolutionResult:
    """
    Calcula o preço final a partir do preço base e da floresta de grupos.
    Os grupos raiz são independentes e somam-se; o desconto total fica entre
    0 e o preço base, e total_discount + final_price == base_price.
    """
    base = to_money(base_price)
    if base < 0:
        raise ValueError(f"Base price cannot be negative: {base}")
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)

    total = Decimal("0")
    applied: List[AppliedDiscount] = []
    rejected: List[RejectedDiscount] = []

    for group in sorted(roots, key=lambda g: g.priority):
        outcome = evaluate_group(
            group, base, ctx, now,
            precision=precision,
            max_depth=max_depth,
            fixed_price_wins=fixed_price_wins,
        )
        total += outcome.discount_amount
        applied.extend(outcome.applied)
        rejected.extend(outcome.rejected)

    total = _clamp(total, base)
    final_price = max(Decimal("0"), base - total)

    logger.debug(
        "discount_resolved",
        product_id=ctx.product_id,
        base_price=str(base),
        total_discount=str(total),
        applied=len(applied),
        rejected=len(rejected),
    )
    return ResolutionResult(
        final_price=final_price,
        total_discount=total,
        applied_discounts=applied,
        rejected_discounts=rejected,
    )
