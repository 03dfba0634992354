# salon_booking/services/identity.py
"""
Identity collaborator: customer and pet resolution for bookings.

Rows created here are committed immediately (they must exist before the
booking critical section opens) and are reported back as `created`, so the
booking coordinator can delete them again if the reservation fails.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import ErrorCode, Result, failure, success, validation_failure
from ..models import Pets, Users
from ..schemas.appointments import GuestInfo, NewPet
from .repository import BookingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedCustomer:
    id: int
    created: bool = False


@dataclass(frozen=True)
class ResolvedPet:
    id: int
    created: bool = False


class IdentityProvider(Protocol):

    def resolve_customer(
        self,
        customer_id: Optional[int],
        guest_info: Optional[GuestInfo],
    ) -> Result[ResolvedCustomer]: ...

    def resolve_pet(
        self,
        customer_id: int,
        pet_id: Optional[int],
        new_pet: Optional[NewPet],
    ) -> Result[ResolvedPet]: ...

    def discard(
        self,
        customer: Optional[ResolvedCustomer],
        pet: Optional[ResolvedPet],
    ) -> None: ...


class SqlIdentityProvider:

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def resolve_customer(
        self,
        customer_id: Optional[int],
        guest_info: Optional[GuestInfo],
    ) -> Result[ResolvedCustomer]:
        with self.session_factory() as db:
            repo = BookingRepository(db)

            if customer_id is not None:
                user = repo.get_user(customer_id)
                if not user:
                    return failure(ErrorCode.NOT_FOUND, "Customer not found")
                if guest_info and user.email.lower() != guest_info.email.lower():
                    if repo.find_user_by_email(guest_info.email):
                        return failure(
                            ErrorCode.EMAIL_EXISTS,
                            "Email is already registered to another account",
                        )
                return success(ResolvedCustomer(id=user.id))

            if guest_info is None:
                return validation_failure("Either customer_id or guest_info must be provided", "customer_id")

            existing = repo.find_user_by_email(guest_info.email)
            if existing:
                return success(ResolvedCustomer(id=existing.id))

            return self._create_guest(db, guest_info)

    def _create_guest(self, db: Session, guest_info: GuestInfo) -> Result[ResolvedCustomer]:
        user = Users(
            email=guest_info.email.lower(),
            first_name=guest_info.first_name,
            last_name=guest_info.last_name,
            phone=guest_info.phone,
            role="customer",
            is_guest=1,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Same email created concurrently by another request
            db.rollback()
            existing = BookingRepository(db).find_user_by_email(guest_info.email)
            if not existing:
                raise
            return success(ResolvedCustomer(id=existing.id))

        logger.info(f"Created guest customer: user_id={user.id}")
        return success(ResolvedCustomer(id=user.id, created=True))

    def resolve_pet(
        self,
        customer_id: int,
        pet_id: Optional[int],
        new_pet: Optional[NewPet],
    ) -> Result[ResolvedPet]:
        with self.session_factory() as db:
            if pet_id is not None:
                pet = BookingRepository(db).get_pet(pet_id)
                if not pet:
                    return failure(ErrorCode.NOT_FOUND, "Pet not found")
                if pet.owner_id != customer_id:
                    return validation_failure("Pet does not belong to this customer", "pet_id")
                return success(ResolvedPet(id=pet.id))

            if new_pet is None:
                return validation_failure("Either pet_id or new_pet must be provided", "pet_id")

            pet = Pets(
                owner_id=customer_id,
                name=new_pet.name,
                size=new_pet.size,
                breed_custom=new_pet.breed_custom,
                weight=new_pet.weight,
            )
            db.add(pet)
            db.commit()

            logger.info(f"Created pet: pet_id={pet.id}, owner_id={customer_id}")
            return success(ResolvedPet(id=pet.id, created=True))

    def discard(
        self,
        customer: Optional[ResolvedCustomer],
        pet: Optional[ResolvedPet],
    ) -> None:
        """Delete rows created for a booking that did not go through."""
        if pet and pet.created:
            self._delete(Pets, pet.id)
        if customer and customer.created:
            self._delete(Users, customer.id)

    def _delete(self, model, row_id: int) -> None:
        with self.session_factory() as db:
            obj = db.get(model, row_id)
            if not obj:
                return
            db.delete(obj)
            try:
                db.commit()
            except IntegrityError:
                # Picked up by a concurrent request in the meantime; keep it
                db.rollback()
                logger.warning(f"Kept {model.__tablename__} id={row_id}: still referenced")
                return
        logger.info(f"Compensated {model.__tablename__} id={row_id}")
