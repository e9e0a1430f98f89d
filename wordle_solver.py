"""Greedy solver for the Wordle word-guessing game.

# Rules of the game

In the game Wordle, we try to guess a 5-letter word. After each guess, we get
one of the following feedback values for each letter in the guess:

    here (g): The letter appears in the word in this exact position.
    nowhere (r): The letter does not appear anywhere in the word.
    elsewhere (y): The letter appears in the word, but not in this position.

We use a simplified ELSEWHERE rule: a guess letter gets ELSEWHERE whenever the
word contains it at some other position, no matter how many times it repeats.
For the guess

    EERIE

against the word

    PAUSE

the real game says "rrrrg", while we say "yyrrg". Filtering with the same
rule keeps everything self-consistent: the answer always survives the
feedback it produces.

The feedback for a whole word is packed into one integer, two bits per
position, so it can index a list of bucket counts directly.


# Our strategy

Let W denote the set of answers that are consistent with all feedback we have
received in all past rounds. We guess based on a one-step (greedy) exhaustive
search to minimize the size of the next round's feasible word list. Precisely,
we select the guess g that minimizes

    sum over feedback values f of |{w in W: feedback(w, g) = f}|^2

which is |W| times the expected size of W after the next round, assuming the
answer is uniformly distributed over W. Ties go to the guess that appears
first in the word list.

The guess g is drawn from the full guess list plus the answer list. When W
has one or two members we just guess the first of them: that wins within two
more rounds at worst.

The exhaustive search is too slow for the initial guess where W is the entire
answer list, so the opening guess is a constant chosen offline.
"""

from concurrent.futures import ProcessPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from itertools import count
from timeit import default_timer as timer
import argparse
import logging
import string
import sys

from tqdm import tqdm


log = logging.getLogger(__name__)

# Per-position outcome codes. Code 3 is never produced.
NOWHERE = 0
ELSEWHERE = 1
HERE = 2

# User-facing feedback symbols, as typed on the command line.
FEEDBACK_SYMBOLS = {"r": NOWHERE, "y": ELSEWHERE, "g": HERE}
OUTCOME_SYMBOLS = {code: symbol for symbol, code in FEEDBACK_SYMBOLS.items()}


@dataclass(frozen=True)
class Rules:
    """Game constants, passed around instead of being baked in."""

    word_length: int = 5
    alphabet: str = string.ascii_lowercase
    # Pre-computed known best first guess for the standard word lists.
    opening_guess: str = "roate"
    # Candidate lists shorter than this are logged each round.
    show_threshold: int = 100
    # Rounds the command line plays before giving up; 0 means no limit.
    max_rounds: int = 10


DEFAULT_RULES = Rules()


class WordleError(ValueError):
    pass


class InvalidLetter(WordleError):
    pass


class InvalidLength(WordleError):
    pass


class InvalidFeedback(WordleError):
    pass


class InvalidFeedbackLength(InvalidFeedback, InvalidLength):
    pass


def letter_index(letter, alphabet):
    i = alphabet.find(letter) if len(letter) == 1 else -1
    if i < 0:
        raise InvalidLetter(f"invalid letter {letter!r}")
    return i


class Word:
    """A fixed-length word over the alphabet.

    ``indices`` holds the alphabet index of each letter and ``positions`` holds,
    for every alphabet symbol, a bitmask of the positions where it occurs, so
    membership tests are a single list lookup.
    """

    def __init__(self, text, rules=DEFAULT_RULES):
        if len(text) != rules.word_length:
            raise InvalidLength(
                f"invalid word {text!r}: expected {rules.word_length} letters"
            )
        self.text = text
        self.alphabet = rules.alphabet
        self.indices = tuple(letter_index(l, rules.alphabet) for l in text)
        positions = [0] * len(rules.alphabet)
        for i, a in enumerate(self.indices):
            positions[a] |= 1 << i
        self.positions = tuple(positions)

    def contains_letter(self, letter):
        return self.positions[letter_index(letter, self.alphabet)] != 0

    def __getitem__(self, i):
        return self.text[i]

    def __len__(self):
        return len(self.text)

    def __str__(self):
        return self.text

    def __repr__(self):
        return f"Word({self.text!r})"

    def __eq__(self, other):
        return isinstance(other, Word) and self.text == other.text

    def __hash__(self):
        return hash(self.text)


# Feedback keys: position i lives in bits 2i and 2i+1.

def compute_outcome(guess, solution):
    key = 0
    for i, (g, s) in enumerate(zip(guess.indices, solution.indices)):
        if g == s:
            code = HERE
        elif solution.positions[g]:
            code = ELSEWHERE
        else:
            code = NOWHERE
        key |= code << (2 * i)
    return key


def encode_outcomes(outcomes):
    key = 0
    for i, code in enumerate(outcomes):
        key |= code << (2 * i)
    return key


def decode_key(key, length=DEFAULT_RULES.word_length):
    return [(key >> (2 * i)) & 0x3 for i in range(length)]


def max_key(length=DEFAULT_RULES.word_length):
    return encode_outcomes([HERE] * length)


def parse_feedback(text, length=DEFAULT_RULES.word_length):
    text = text.strip().lower()
    if len(text) != length:
        raise InvalidFeedbackLength(
            f"invalid feedback {text!r}: expected {length} symbols"
        )
    outcomes = []
    for symbol in text:
        if symbol not in FEEDBACK_SYMBOLS:
            raise InvalidFeedback(f"invalid feedback symbol {symbol!r}")
        outcomes.append(FEEDBACK_SYMBOLS[symbol])
    return encode_outcomes(outcomes)


def format_feedback(key, length=DEFAULT_RULES.word_length):
    return "".join(OUTCOME_SYMBOLS[code] for code in decode_key(key, length))


class Constraint:
    """One round of history: a guess and the feedback it received."""

    def __init__(self, guess, key):
        self.guess = guess
        self.key = key
        self.outcomes = tuple(decode_key(key, len(guess)))
        if key >> (2 * len(guess)) or any(c not in OUTCOME_SYMBOLS
                                          for c in self.outcomes):
            raise InvalidFeedback(f"invalid feedback key {key}")

    @classmethod
    def from_strings(cls, guess_text, feedback_text, rules=DEFAULT_RULES):
        guess = Word(guess_text, rules)
        return cls(guess, parse_feedback(feedback_text, rules.word_length))

    @classmethod
    def from_solution(cls, guess, solution):
        return cls(guess, compute_outcome(guess, solution))

    def is_consistent_with(self, candidate):
        for i, (letter, code) in enumerate(zip(self.guess.indices,
                                               self.outcomes)):
            present = candidate.positions[letter]
            if code == NOWHERE:
                if present:
                    return False
            elif code == ELSEWHERE:
                if not present or candidate.indices[i] == letter:
                    return False
            elif candidate.indices[i] != letter:
                return False
        return True

    def is_solved(self):
        return self.key == max_key(len(self.guess))

    def __eq__(self, other):
        return (isinstance(other, Constraint) and self.guess == other.guess
                and self.key == other.key)

    def __hash__(self):
        return hash((self.guess, self.key))

    def __repr__(self):
        feedback = format_feedback(self.key, len(self.guess))
        return f"Constraint({str(self.guess)!r}, {feedback!r})"


class ConstraintStack:
    """Accepted feedback in round order. Strictly last in, first out."""

    def __init__(self):
        self._constraints = []

    def push(self, constraint):
        self._constraints.append(constraint)

    def pop(self):
        return self._constraints.pop()

    def is_consistent(self, candidate):
        return all(c.is_consistent_with(candidate) for c in self._constraints)

    @contextmanager
    def speculate(self, constraint):
        # The stack is restored even if the body raises.
        self.push(constraint)
        try:
            yield self
        finally:
            self.pop()

    def __len__(self):
        return len(self._constraints)

    def __iter__(self):
        return iter(self._constraints)

    def __repr__(self):
        return f"ConstraintStack({self._constraints!r})"


class EngineState(Enum):
    AWAITING_FIRST_GUESS = "awaiting first guess"
    IN_PROGRESS = "in progress"


@contextmanager
def time_section(name, loglevel=logging.DEBUG):
    start = timer()
    try:
        yield
    finally:
        log.log(loglevel, f"{name} took {timer() - start:.3f} s")


# Sum of squared bucket sizes the guess induces over the candidates.
def partition_score(guess, candidates, size):
    buckets = [0] * size
    for solution in candidates:
        buckets[compute_outcome(guess, solution)] += 1
    return sum(n * n for n in buckets if n)


# Returns (score, index) of the first lowest-scoring guess, with indices
# counted from `offset`. (None, None) when there are no guesses.
def best_guess(guesses, candidates, size, offset=0, progress=False):
    best_score = None
    best_index = None
    for i, guess in enumerate(tqdm(guesses, disable=not progress), offset):
        score = partition_score(guess, candidates, size)
        if best_score is None or score < best_score:
            best_score = score
            best_index = i
    return best_score, best_index


# Single-argument wrapper for ProcessPoolExecutor.map.
def _best_guess_in_shard(args):
    guesses, candidates, size, offset = args
    return best_guess(guesses, candidates, size, offset)


class GuessEngine:
    """Picks guesses by one-step exhaustive search over the guess list.

    The engine owns both word lists. The answer list is appended to the guess
    list once, without removing duplicates; they only cost a little time.
    With ``workers > 1`` the guess list is split into contiguous shards that
    are scored in a process pool.
    """

    def __init__(self, guess_words, answer_words, rules=DEFAULT_RULES,
                 workers=1, progress=False):
        self.rules = rules
        self.answer_words = list(answer_words)
        self.guess_words = list(guess_words) + self.answer_words
        self.constraints = ConstraintStack()
        self.opening_guess = Word(rules.opening_guess, rules)
        self.workers = workers
        self.progress = progress
        self.key_space = max_key(rules.word_length) + 1
        # Expected candidates left after the last selected guess; None for
        # the opening guess.
        self.last_expected = None

    @property
    def state(self):
        if len(self.constraints) == 0:
            return EngineState.AWAITING_FIRST_GUESS
        return EngineState.IN_PROGRESS

    def record_feedback(self, constraint):
        self.constraints.push(constraint)

    def revert_last_feedback(self):
        return self.constraints.pop()

    def candidate_solutions(self):
        return [w for w in self.answer_words if self.constraints.is_consistent(w)]

    def remaining_after(self, constraint):
        with self.constraints.speculate(constraint):
            return len(self.candidate_solutions())

    def score_guess(self, guess, candidates=None):
        if candidates is None:
            candidates = self.candidate_solutions()
        return partition_score(guess, candidates, self.key_space)

    def expected_remaining(self, guess):
        candidates = self.candidate_solutions()
        if not candidates:
            return 0.0
        return self.score_guess(guess, candidates) / len(candidates)

    def select_guess(self):
        self.last_expected = None
        if self.state is EngineState.AWAITING_FIRST_GUESS:
            return self.opening_guess

        candidates = self.candidate_solutions()
        if len(candidates) < self.rules.show_threshold:
            log.info(f"{len(candidates)} possible solutions: "
                     f"{' '.join(map(str, candidates))}")
        if not candidates:
            # Every guess scores 0 here, so the search returns the first one.
            log.warning("No possible solution is consistent with the "
                        "feedback so far.")
        elif len(candidates) <= 2:
            self.last_expected = (self.score_guess(candidates[0], candidates)
                                  / len(candidates))
            return candidates[0]

        with time_section(f"Scoring {len(self.guess_words)} guesses against "
                          f"{len(candidates)} candidates"):
            if self.workers > 1:
                score, index = self._search_parallel(candidates)
            else:
                score, index = best_guess(self.guess_words, candidates,
                                          self.key_space,
                                          progress=self.progress)
        if index is None:
            return None
        self.last_expected = score / len(candidates) if candidates else 0.0
        log.debug(f"Best guess {self.guess_words[index]} scores {score}")
        return self.guess_words[index]

    def _search_parallel(self, candidates):
        n = len(self.guess_words)
        chunksize = max(1, -(-n // self.workers))
        shards = [
            (self.guess_words[i:i + chunksize], candidates, self.key_space, i)
            for i in range(0, n, chunksize)
        ]
        log.debug(f"Scoring {n} guesses in {len(shards)} shards of up to "
                  f"{chunksize} with {self.workers} workers")
        with ProcessPoolExecutor(self.workers) as executor:
            results = [r for r in executor.map(_best_guess_in_shard, shards)
                       if r[1] is not None]
        if not results:
            return None, None
        # Ties go to the lowest index, as in the serial search.
        return min(results)


def read_words(filename, rules=DEFAULT_RULES):
    words = []
    with open(filename) as f:
        for lineno, line in enumerate(f, 1):
            text = line.strip()
            if not text:
                continue
            try:
                words.append(Word(text, rules))
            except WordleError as e:
                raise type(e)(f"{filename}:{lineno}: {e}") from e
    return words


def manual_feedback(guess, rules=DEFAULT_RULES):
    while True:
        try:
            line = input("feedback: ")
        except EOFError:
            return None
        try:
            return Constraint.from_strings(str(guess), line, rules)
        except InvalidFeedback:
            print("Invalid feedback!")


def known_answer_feedback(answer):
    def feedbacker(guess):
        constraint = Constraint.from_solution(guess, answer)
        print(f"feedback: {format_feedback(constraint.key, len(guess))}")
        return constraint
    return feedbacker


# Plays rounds until the feedback is all HERE, the feedbacker runs out of
# input (returns None), or `max_rounds` is used up. Returns the number of
# guesses on success, else None. Deciding that the game is over is our job,
# not the engine's.
def loop(engine, feedbacker, max_rounds=None):
    if max_rounds is None:
        max_rounds = engine.rules.max_rounds
    rounds = count() if max_rounds == 0 else range(max_rounds)
    for i in rounds:
        g = engine.select_guess()
        if g is None:
            print("no words to guess from.")
            return None
        print(f"guess: {g}")
        if engine.last_expected is None:
            print("precomputed opening guess.")
        else:
            print(f"expected size after pruning: "
                  f"{engine.last_expected:.1f}.")
        constraint = feedbacker(g)
        if constraint is None:
            return None
        if constraint.is_solved():
            print(f"solution after {i + 1} guesses: {g}")
            return i + 1
        engine.record_feedback(constraint)

    print(f"giving up after {max_rounds} tries. possibilities:")
    print(" ".join(map(str, engine.candidate_solutions())))
    return None


def non_negative_int(text):
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more, got {value}")
    return value


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Wordle solver.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--answers", default="answers.txt",
        help="File of possible answers, one per line",
    )
    parser.add_argument(
        "--guesses", default="guesses.txt",
        help="File of extra allowed guesses, one per line",
    )
    parser.add_argument(
        "--answer",
        help="Play against this known word instead of asking for feedback",
    )
    parser.add_argument(
        "--opening", default=DEFAULT_RULES.opening_guess,
        help="First guess",
    )
    parser.add_argument(
        "--word-length", type=int, default=DEFAULT_RULES.word_length,
        help="Letters per word",
    )
    parser.add_argument(
        "--max-rounds", type=non_negative_int,
        default=DEFAULT_RULES.max_rounds,
        help="Give up after this many guesses (0 for no limit)",
    )
    parser.add_argument(
        "--workers", type=int, default=1,
        help="Number of processes used to score guesses",
    )
    parser.add_argument(
        "--no-progress", action="store_true",
        help="Hide the search progress bar",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Be verbose",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    rules = Rules(
        word_length=args.word_length,
        opening_guess=args.opening,
        max_rounds=args.max_rounds,
    )
    try:
        answers = read_words(args.answers, rules)
        guesses = read_words(args.guesses, rules)
        engine = GuessEngine(guesses, answers, rules, workers=args.workers,
                             progress=not args.no_progress)
        answer = Word(args.answer, rules) if args.answer else None
    except OSError as e:
        log.error(f"Unable to read word list: {e}")
        return 1
    except WordleError as e:
        log.error(str(e))
        return 1
    log.info(f"Loaded {len(answers)} answers and {len(guesses)} guesses.")

    if answer is not None:
        # Test on known word.
        feedbacker = known_answer_feedback(answer)
    else:
        # Manual input for interacting with Wordle site.
        print("enter feedback codes: g = here, y = elsewhere, r = nowhere.")
        feedbacker = lambda guess: manual_feedback(guess, rules)
    loop(engine, feedbacker)
    return 0


if __name__ == "__main__":
    sys.exit(main())
