import logging
from datetime import datetime
from typing import List

from sqlmodel import Session, select

from bookstore.constants.order_status import OrderStatus
from bookstore.constants.roles import is_staff
from bookstore.exceptions import Forbidden, NotFound, ValidationError
from bookstore.models.book import Book
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.models.review import Review
from bookstore.models.user import User

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, session: Session):
        self.session = session

    def check_eligibility(self, user_id: int, book_id: int) -> bool:
        """A user may review a book once a completed order of theirs contains it."""
        hit = self.session.exec(
            select(OrderItem.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                OrderItem.book_id == book_id,
                Order.user_id == user_id,
                Order.status == OrderStatus.completed.value,
            )
            .limit(1)
        ).first()
        return hit is not None

    def add_review(self, user_id: int, book_id: int, comment: str, rating: int | None = None) -> Review:
        if not self.session.get(Book, book_id):
            raise NotFound("Book not found")

        if not comment or not comment.strip():
            raise ValidationError("Review comment cannot be empty")

        if rating is not None and not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        if not self.check_eligibility(user_id, book_id):
            raise Forbidden(
                "You are not eligible to review this book. Please complete a purchase first."
            )

        review = Review(
            user_id=user_id,
            book_id=book_id,
            comment=comment.strip(),
            rating=rating,
            created_at=datetime.utcnow(),
        )
        self.session.add(review)
        self.session.commit()
        self.session.refresh(review)
        logger.info(f"User {user_id} reviewed book {book_id}")
        return review

    def list_reviews(self, book_id: int) -> dict:
        if not self.session.get(Book, book_id):
            raise NotFound("Book not found")

        rows = self.session.exec(
            select(Review, User)
            .join(User, User.id == Review.user_id)
            .where(Review.book_id == book_id)
            .order_by(Review.created_at.desc())
        ).all()

        ratings = [r.rating for r, _ in rows if r.rating is not None]
        avg_rating = sum(ratings) / len(ratings) if ratings else 0

        return {
            "book_id": book_id,
            "average_rating": avg_rating,
            "total_reviews": len(rows),
            "reviews": [
                {
                    "id": review.id,
                    "book_id": review.book_id,
                    "user_id": review.user_id,
                    "user_name": user.full_name,
                    "rating": review.rating,
                    "comment": review.comment,
                    "created_at": review.created_at,
                }
                for review, user in rows
            ],
        }

    def delete_review(self, review_id: int, user_id: int, role: str = "user"):
        review = self.session.get(Review, review_id)
        if not review:
            raise NotFound("Review not found")

        if review.user_id != user_id and not is_staff(role):
            raise Forbidden("You can only delete your own reviews")

        self.session.delete(review)
        self.session.commit()

    def reviews_by_user(self, user_id: int) -> List[Review]:
        return self.session.exec(
            select(Review).where(Review.user_id == user_id)
        ).all()
