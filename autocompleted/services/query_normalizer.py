import unicodedata

from autocompleted.services.errors import BadInput

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 100


class QueryNormalizer:
    """
    Responsible for turning raw autocomplete input into a canonical search key.
    Inputs that differ only in case, composition, whitespace or wildcards
    collapse onto the same key (and therefore the same cache entry).
    """

    @staticmethod
    def normalize(query: str) -> str:
        """
        Normalizes the user search prefix.

        Steps:
        1. Length check on the raw input's UTF-8 byte count (before any
           transformation), so "猫耳" (6 bytes) passes and 40 CJK characters
           (120 bytes) do not.
        2. NFC Normalization: composes decomposed characters.
        3. Lowercasing.
        4. Removal of literal '*' and '%'.
        5. Removal of every whitespace character.

        Args:
            query (str): Raw user input.

        Returns:
            str: Canonical key. May be empty when the input held only
            wildcards and whitespace.

        Raises:
            BadInput: If the raw input is shorter than 3 or longer than 100 bytes.
        """
        size = len(query.encode('utf-8'))
        if size > MAX_QUERY_LENGTH:
            raise BadInput(f"query longer than {MAX_QUERY_LENGTH} bytes")
        if size < MIN_QUERY_LENGTH:
            raise BadInput(f"query shorter than {MIN_QUERY_LENGTH} bytes")

        normalized = unicodedata.normalize('NFC', query)
        normalized = normalized.lower()
        normalized = normalized.replace('*', '').replace('%', '')
        normalized = ''.join(ch for ch in normalized if not ch.isspace())

        return normalized
