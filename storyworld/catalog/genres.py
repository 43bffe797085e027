"""The fixed set of genres a storybook can belong to."""

from typing import Dict, List

GENRES: List[Dict[str, str]] = [
    {
        "code": "fairy",
        "name": "Fairy Tales",
        "description": "Magical stories with princesses, fairies, and magical creatures",
        "icon": "fairy",
        "color": "#ff9f43",
    },
    {
        "code": "animal",
        "name": "Animal Stories",
        "description": "Fun adventures with animal characters",
        "icon": "paw",
        "color": "#00cec9",
    },
    {
        "code": "adventure",
        "name": "Adventure",
        "description": "Exciting journeys and discoveries",
        "icon": "compass",
        "color": "#e17055",
    },
    {
        "code": "educational",
        "name": "Educational",
        "description": "Learning stories with numbers, letters, and facts",
        "icon": "book",
        "color": "#6c5ce7",
    },
    {
        "code": "bedtime",
        "name": "Bedtime Stories",
        "description": "Calming tales for sleepy time",
        "icon": "moon",
        "color": "#0984e3",
    },
    {
        "code": "fantasy",
        "name": "Fantasy",
        "description": "Imaginative worlds and magical adventures",
        "icon": "dragon",
        "color": "#d63031",
    },
    {
        "code": "science",
        "name": "Science",
        "description": "STEM stories and scientific discoveries",
        "icon": "flask",
        "color": "#00b894",
    },
    {
        "code": "moral",
        "name": "Moral Stories",
        "description": "Stories teaching values and life lessons",
        "icon": "heart",
        "color": "#fd79a8",
    },
]

GENRE_CODES = frozenset(g["code"] for g in GENRES)


def is_valid_genre(code: str) -> bool:
    return code in GENRE_CODES
