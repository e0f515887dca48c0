import unittest

from artisign.backend.ml.text_to_sign import text_to_sign
from artisign.backend.realtime.errors import InvalidInput


class TestTextToSign(unittest.TestCase):
    def test_known_word_and_fingerspelling(self):
        out = text_to_sign("Halo  budi")

        self.assertEqual(out["text"], "Halo  budi")
        word, spelled = out["signs"]
        self.assertEqual(word, {"type": "word", "original": "halo", "mapped": "Halo", "knownInDataset": True})
        self.assertEqual(spelled["type"], "fingerspell")
        self.assertEqual([l["mapped"] for l in spelled["letters"]], ["B", "U", "D", "I"])
        self.assertTrue(all(l["exists"] for l in spelled["letters"]))

    def test_multi_word_phrase_is_one_sign(self):
        signs = text_to_sign("Apa kabar budi apa")["signs"]

        self.assertEqual(signs[0], {
            "type": "word", "original": "apa kabar", "mapped": "Apa Kabar", "knownInDataset": True,
        })
        self.assertEqual(signs[1]["type"], "fingerspell")
        self.assertEqual(signs[2]["mapped"], "Apa")
        self.assertEqual(len(signs), 3)

    def test_non_letters_are_marked_missing(self):
        letters = text_to_sign("a1")["signs"][0]["letters"]
        self.assertEqual([l["exists"] for l in letters], [True, False])

    def test_empty_text(self):
        for text in ("", "   "):
            with self.assertRaises(InvalidInput):
                text_to_sign(text)


if __name__ == "__main__":
    unittest.main()
