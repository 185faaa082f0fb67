from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
import logging

from cafehop.core.errors import ReviewReplyError

logger = logging.getLogger(__name__)

MIN_REPLY_LENGTH = 10


@dataclass(frozen=True)
class Reply:
    text: str
    date: date


@dataclass(frozen=True)
class Review:
    id: str
    cafe_id: str
    customer_name: str
    rating: int
    text: str
    date: date
    reply: Optional[Reply] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'cafe_id': self.cafe_id,
            'customer_name': self.customer_name,
            'rating': self.rating,
            'text': self.text,
            'date': self.date.isoformat(),
            'reply': {'text': self.reply.text, 'date': self.reply.date.isoformat()} if self.reply else None,
        }


@dataclass(frozen=True)
class RatingSummary:
    average: float
    count: int
    counts: Dict[int, int]

    def to_dict(self) -> Dict[str, Any]:
        return {'average': self.average, 'count': self.count, 'counts': self.counts}


def summarize(reviews: Iterable[Review]) -> RatingSummary:
    """Average rating (one decimal) and a 1-5 star breakdown"""
    counts = {star: 0 for star in range(1, 6)}
    total = 0
    for review in reviews:
        counts[review.rating] = counts.get(review.rating, 0) + 1
        total += review.rating
    count = sum(counts.values())
    average = round(total / count, 1) if count else 0.0
    return RatingSummary(average=average, count=count, counts=counts)


def filter_by_rating(reviews: Iterable[Review], rating: Optional[int] = None) -> List[Review]:
    if rating is None:
        return list(reviews)
    return [review for review in reviews if review.rating == rating]


def reply(review: Review, text: str, today: date) -> Review:
    """Attach the cafe's reply to a review; each review takes one reply"""
    if review.reply is not None:
        raise ReviewReplyError("This review already has a reply")
    text = (text or '').strip()
    if len(text) < MIN_REPLY_LENGTH:
        raise ReviewReplyError(f"Reply must be at least {MIN_REPLY_LENGTH} characters long")

    logger.info(f"Reply added to review {review.id}")
    return replace(review, reply=Reply(text=text, date=today))
