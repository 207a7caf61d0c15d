from fastapi import APIRouter, Depends

from bookstore.dependencies.services import get_review_service
from bookstore.models.user import User
from bookstore.schemas.review_schemas import ReviewCreate
from bookstore.services.review_service import ReviewService
from bookstore.utils.token import get_current_user

router = APIRouter()


@router.get("/eligibility/{book_id}")
def check_eligibility(
    book_id: int,
    reviews: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user),
):
    eligible = reviews.check_eligibility(current_user.id, book_id)
    return {
        "book_id": book_id,
        "eligible": eligible,
        "message": (
            "You are eligible to review this book."
            if eligible else
            "You are not eligible to review this book. Please complete a purchase first."
        ),
    }


@router.post("", status_code=201)
def create_review(
    data: ReviewCreate,
    reviews: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user),
):
    review = reviews.add_review(current_user.id, data.book_id, data.comment, data.rating)
    return {"message": "Review posted successfully.", "review": review}


@router.get("/mine")
def my_reviews(
    reviews: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user),
):
    return reviews.reviews_by_user(current_user.id)


@router.get("/book/{book_id}")
def list_reviews(
    book_id: int,
    reviews: ReviewService = Depends(get_review_service),
):
    return reviews.list_reviews(book_id)


@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    reviews: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user),
):
    reviews.delete_review(review_id, current_user.id, role=current_user.role)
    return {"message": "Review deleted successfully"}
