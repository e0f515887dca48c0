from artisign.backend.ml.classifier import LETTERS, WORDS
from artisign.backend.realtime.errors import InvalidInput


def text_to_sign(text: str, words: dict = WORDS, letters: dict = LETTERS) -> dict:
    """
    Maps text to signs: a word or phrase with its own dynamic sign is kept
    whole (longest phrase first, so "apa kabar" beats "apa"), anything else
    is fingerspelled letter by letter.
    """
    if not text or not text.strip():
        raise InvalidInput("No text provided")

    phrases = {tuple(w.lower().split()): w for w in words.values()}
    longest = max((len(p) for p in phrases), default=0)
    known_letters = {l.upper() for l in letters.values()}

    tokens = text.strip().lower().split()
    signs = []
    i = 0
    while i < len(tokens):
        for n in range(min(longest, len(tokens) - i), 0, -1):
            phrase = tuple(tokens[i:i + n])
            if phrase in phrases:
                signs.append({
                    "type": "word",
                    "original": " ".join(phrase),
                    "mapped": phrases[phrase],
                    "knownInDataset": True,
                })
                i += n
                break
        else:
            word = tokens[i]
            signs.append({
                "type": "fingerspell",
                "original": word,
                "letters": [
                    {"letter": ch, "mapped": ch.upper(), "exists": ch.upper() in known_letters}
                    for ch in word
                ],
            })
            i += 1

    return {"text": text, "signs": signs}
