GENERIC_TAGS = {
    "technology", "ai", "science", "innovation", "research",
    "general", "business", "education", "information", "knowledge",
    "development", "analysis", "study", "topic", "subject",
}

MAX_TAGS = 5
MAX_TAG_LENGTH = 24
MIN_QUERY_LENGTH = 3


def parse_tags(raw: str) -> list[str]:
    tags = []
    for part in raw.split(","):
        tag = part.strip().replace('"', "").replace("'", "")
        if not tag or len(tag) > MAX_TAG_LENGTH:
            continue
        if tag.lower() in GENERIC_TAGS:
            continue
        tags.append(tag)
    return tags[:MAX_TAGS]


def tags_for_query(query: str, raw: str) -> list[str] | None:
    """Tags to persist for a query, or None when the record gets no tags field."""
    tags = parse_tags(raw)
    if len(query.strip()) < MIN_QUERY_LENGTH or not tags:
        return None
    return tags
