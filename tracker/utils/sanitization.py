import re

def sanitize_string(v):
    if not isinstance(v, str):
        return v
    # Drop HTML tags, they end up in emails and the frontend
    v = re.sub(r'<[^>]*>', '', v)
    return v.strip()


def sanitize_tags(tags):
    if not isinstance(tags, list):
        return tags
    cleaned = [sanitize_string(t) for t in tags]
    return [t for t in cleaned if t]
