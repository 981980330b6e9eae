"""
Customer onboarding and referral codes.

Creates customers, assigns referral codes lazily and attaches a referrer
exactly once.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.config.constants import REFERRAL_CODE_ALPHABET
from solarflow.config.settings import settings
from solarflow.models.customer import Customer
from solarflow.repositories.customer_repository import CustomerRepository
from solarflow.services.base_service import BaseService, transaction
from solarflow.utils.exceptions import InvalidReferralError, NotFoundError


def normalize_referral_code(
    raw: str | None, prefix: str | None = None
) -> str | None:
    """
    Normalize user-entered referral code.

    Trims, upper-cases and adds the program prefix when missing.

    Args:
        raw: Code as typed by the user
        prefix: Code prefix (defaults to settings)

    Returns:
        Normalized code or None if blank
    """
    if not raw or not isinstance(raw, str):
        return None

    prefix = (prefix if prefix is not None else settings.referral_code_prefix).upper()
    code = raw.strip().upper()
    if not code:
        return None
    if code.startswith(prefix):
        return code
    return f"{prefix}{code}"


class CustomerReferralService(BaseService):
    """Customer registration and referral attachment."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize customer referral service."""
        super().__init__(session)
        self.customer_repo = CustomerRepository(session)

    async def generate_unique_referral_code(self) -> str:
        """
        Generate a referral code no customer holds yet.

        Returns:
            Prefixed random code
        """
        while True:
            body = "".join(
                secrets.choice(REFERRAL_CODE_ALPHABET)
                for _ in range(settings.referral_code_length)
            )
            code = f"{settings.referral_code_prefix}{body}"
            # Collision is unlikely but checked
            if not await self.customer_repo.get_by_referral_code(code):
                return code

    @transaction
    async def register_customer(
        self,
        mobile: str,
        referral_code: str | None = None,
        full_name: str | None = None,
    ) -> Customer:
        """
        Register new customer with optional referrer.

        Unknown referral codes are ignored.

        Args:
            mobile: Mobile number (unique)
            referral_code: Referral code of the inviting customer
            full_name: Customer name

        Returns:
            Created customer

        Raises:
            InvalidReferralError: If the mobile number is already registered
        """
        if await self.customer_repo.get_by_mobile(mobile):
            raise InvalidReferralError(f"Customer with mobile {mobile} already exists")

        referred_by_id = None
        level = 0

        code = normalize_referral_code(referral_code)
        if code:
            upline = await self.customer_repo.get_by_referral_code(code)
            if upline:
                referred_by_id = upline.id
                level = (upline.level or 0) + 1
            else:
                self.logger.info(
                    "Unknown referral code ignored",
                    extra={"referral_code": code},
                )

        customer = await self.customer_repo.create(
            mobile=mobile,
            full_name=full_name,
            referral_code=await self.generate_unique_referral_code(),
            referred_by_id=referred_by_id,
            level=level,
        )

        self.logger.info(
            "Customer registered",
            extra={
                "customer_id": customer.id,
                "referred_by_id": referred_by_id,
                "level": level,
            },
        )
        return customer

    @transaction
    async def ensure_referral_code(self, customer_id: int) -> str:
        """
        Get customer's referral code, assigning one on first need.

        Args:
            customer_id: Customer ID

        Returns:
            Referral code

        Raises:
            NotFoundError: If customer does not exist
        """
        customer = await self.customer_repo.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        if not customer.referral_code:
            customer.referral_code = await self.generate_unique_referral_code()
            await self.session.flush()
            self.logger.info(
                "Referral code assigned",
                extra={"customer_id": customer_id, "code": customer.referral_code},
            )

        return customer.referral_code

    @transaction
    async def attach_referrer(
        self, customer_id: int, referral_code: str
    ) -> Customer:
        """
        Attach a referrer to a customer who has none yet.

        A customer already referred is returned unchanged; the referrer
        pointer and level are assigned only once.

        Args:
            customer_id: Customer ID
            referral_code: Referral code of the inviting customer

        Returns:
            Customer

        Raises:
            NotFoundError: If customer does not exist
            InvalidReferralError: Self-referral or a referral cycle
        """
        customer = await self.customer_repo.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        if customer.referred_by_id is not None:
            return customer

        code = normalize_referral_code(referral_code)
        upline = await self.customer_repo.get_by_referral_code(code) if code else None
        if upline is None:
            self.logger.info(
                "Unknown referral code ignored",
                extra={"customer_id": customer_id, "referral_code": code},
            )
            return customer

        if upline.id == customer.id:
            raise InvalidReferralError("Customer cannot refer themselves")

        # Walk the whole upline of the referrer; attaching must not close a loop
        if await self._is_ancestor(customer.id, upline.id):
            raise InvalidReferralError("Referral would create a cycle")

        customer.referred_by_id = upline.id
        customer.level = (upline.level or 0) + 1
        await self.session.flush()

        self.logger.info(
            "Referrer attached",
            extra={
                "customer_id": customer_id,
                "referred_by_id": upline.id,
                "level": customer.level,
            },
        )
        return customer

    async def _is_ancestor(self, candidate_id: int, start_id: int) -> bool:
        """Check whether candidate appears in start's referrer chain."""
        visited: set[int] = set()
        current: int | None = start_id
        while current is not None and current not in visited:
            if current == candidate_id:
                return True
            visited.add(current)
            _, current = await self.customer_repo.get_referrer_id(current)
        return False
