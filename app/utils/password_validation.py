"""
Password complexity validation.

Point-additive scorer: each satisfied rule adds points, the total is capped at
100 and bucketed into a strength label. Pure functions, no I/O.
"""
import re
from dataclasses import dataclass, field, replace
from typing import List, Optional

COMMON_PASSWORDS = [
    'password', 'password123', '123456', '12345678', 'qwerty', 'abc123',
    'letmein', 'welcome', 'monkey', 'dragon', '111111', 'password1',
    'iloveyou', 'admin', 'login', 'master', 'hello', 'freedom', 'whatever',
    'qwerty123', 'trustno1', 'superman', 'batman', 'shadow', 'michael',
    'jennifer', 'computer', 'soccer', 'football', 'baseball', 'princess',
]

SEQUENCES = ['0123456789', 'abcdefghijklmnopqrstuvwxyz', 'qwertyuiop', 'asdfghjkl', 'zxcvbnm']

KEYBOARD_PATTERNS = [
    'qwerty', 'qwert', 'werty', 'asdf', 'sdfg', 'dfgh', 'zxcv', 'xcvb', 'cvbn',
    'yuiop', 'uiop', 'hjkl', 'jklm', 'nm', '1234', '2345', '3456', '4567',
    '5678', '6789', '7890',
]

MAX_SCORE = 100


@dataclass(frozen=True)
class PasswordConfig:
    min_length: int = 12
    max_length: int = 128
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_special_chars: bool = True
    special_chars: str = '!@#$%^&*()_+-=[]{}|;:,.<>?'
    max_repeating_chars: int = 3
    check_common_passwords: bool = True
    check_username_similarity: bool = True


PASSWORD_CONFIG = PasswordConfig()


@dataclass
class PasswordStrength:
    label: str
    color: str
    description: str
    progress: int


@dataclass
class PasswordDetails:
    length: int
    has_uppercase: bool
    has_lowercase: bool
    has_numbers: bool
    has_special_chars: bool
    has_repeating_chars: bool
    has_sequential_chars: bool
    has_keyboard_pattern: bool
    is_common_password: bool
    contains_username: bool


@dataclass
class PasswordValidationResult:
    is_valid: bool
    score: int
    strength: PasswordStrength
    details: PasswordDetails
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class PasswordMatchResult:
    is_match: bool
    error: Optional[str]


def _special_chars_regex(config: PasswordConfig) -> re.Pattern:
    return re.compile(f"[{re.escape(config.special_chars)}]")


def _repeating_regex(config: PasswordConfig) -> re.Pattern:
    return re.compile(f"(.)\\1{{{config.max_repeating_chars - 1},}}", re.IGNORECASE)


def _resolve_config(config: Optional[PasswordConfig], overrides: dict) -> PasswordConfig:
    base = config or PASSWORD_CONFIG
    return replace(base, **overrides) if overrides else base


def has_sequential_chars(password: str) -> bool:
    """True if the password contains a 3-character run such as '123' or 'cba'"""
    lower = password.lower()
    for sequence in SEQUENCES:
        for i in range(len(sequence) - 2):
            triple = sequence[i:i + 3]
            if triple in lower or triple[::-1] in lower:
                return True
    return False


def has_keyboard_pattern(password: str) -> bool:
    """True if the password contains a common keyboard walk, forwards or backwards"""
    lower = password.lower()
    return any(pattern in lower or pattern[::-1] in lower for pattern in KEYBOARD_PATTERNS)


def is_common_password(password: str) -> bool:
    return password.lower() in COMMON_PASSWORDS


def get_password_strength(score: int) -> PasswordStrength:
    """Map a 0-100 score onto one of five strength buckets"""
    if score < 30:
        return PasswordStrength('Very Weak', 'destructive', 'This password can be easily guessed', 20)
    if score < 50:
        return PasswordStrength('Weak', 'destructive', 'This password needs improvement', 40)
    if score < 70:
        return PasswordStrength('Fair', 'default', 'This password is acceptable but could be stronger', 60)
    if score < 85:
        return PasswordStrength('Good', 'secondary', 'This is a good password', 80)
    return PasswordStrength('Excellent', 'default', 'This is an excellent password', 100)


def get_password_details(password: str, username: str = '', config: Optional[PasswordConfig] = None) -> PasswordDetails:
    conf = config or PASSWORD_CONFIG
    return PasswordDetails(
        length=len(password),
        has_uppercase=bool(re.search(r'[A-Z]', password)),
        has_lowercase=bool(re.search(r'[a-z]', password)),
        has_numbers=bool(re.search(r'\d', password)),
        has_special_chars=bool(_special_chars_regex(conf).search(password)),
        has_repeating_chars=bool(_repeating_regex(conf).search(password)),
        has_sequential_chars=has_sequential_chars(password),
        has_keyboard_pattern=has_keyboard_pattern(password),
        is_common_password=is_common_password(password),
        contains_username=bool(username) and username.lower() in password.lower(),
    )


def validate_password_complexity(
    password: str = '',
    username: str = '',
    config: Optional[PasswordConfig] = None,
    **overrides,
) -> PasswordValidationResult:
    """
    Validate a password and score it.

    Args:
        password: candidate password
        username: when given, the password must not contain it
        config: base configuration, defaults to PASSWORD_CONFIG
        **overrides: individual PasswordConfig fields to override

    Returns:
        PasswordValidationResult with errors (blocking), warnings (advisory),
        the capped score and its strength bucket
    """
    conf = _resolve_config(config, overrides)
    errors: List[str] = []
    warnings: List[str] = []
    score = 0

    if not password:
        errors.append('Password is required')
        return PasswordValidationResult(
            is_valid=False,
            score=0,
            strength=PasswordStrength('Invalid', 'destructive', 'Password is required', 0),
            details=get_password_details('', username, conf),
            errors=errors,
            warnings=warnings,
        )

    if len(password) < conf.min_length:
        errors.append(f'Password must be at least {conf.min_length} characters long')
    else:
        score += min(20, len(password) * 2)

    if len(password) > conf.max_length:
        errors.append(f'Password must not exceed {conf.max_length} characters')

    has_upper = bool(re.search(r'[A-Z]', password))
    if conf.require_uppercase and not has_upper:
        errors.append('Password must contain at least one uppercase letter (A-Z)')
    elif has_upper:
        score += 15

    has_lower = bool(re.search(r'[a-z]', password))
    if conf.require_lowercase and not has_lower:
        errors.append('Password must contain at least one lowercase letter (a-z)')
    elif has_lower:
        score += 15

    has_number = bool(re.search(r'\d', password))
    if conf.require_numbers and not has_number:
        errors.append('Password must contain at least one number (0-9)')
    elif has_number:
        score += 15

    if conf.require_special_chars:
        if not _special_chars_regex(conf).search(password):
            errors.append(f'Password must contain at least one special character ({conf.special_chars})')
        else:
            score += 20

    if conf.max_repeating_chars:
        if _repeating_regex(conf).search(password):
            errors.append(
                f'Password cannot contain more than {conf.max_repeating_chars - 1} repeating characters'
            )
        else:
            score += 10

    if has_sequential_chars(password):
        warnings.append('Avoid sequential characters like "123" or "abc"')
    else:
        score += 5

    if conf.check_common_passwords and is_common_password(password):
        errors.append('This password is too common. Please choose a more unique password')
    else:
        score += 10

    if conf.check_username_similarity and username and username.lower() in password.lower():
        errors.append('Password cannot contain your username')
    elif username:
        score += 5

    if has_keyboard_pattern(password):
        warnings.append('Avoid keyboard patterns like "qwerty" or "asdf"')
    else:
        score += 5

    final_score = min(score, MAX_SCORE)

    return PasswordValidationResult(
        is_valid=not errors,
        score=final_score,
        strength=get_password_strength(final_score),
        details=get_password_details(password, username, conf),
        errors=errors,
        warnings=warnings,
    )


def get_password_requirements(config: Optional[PasswordConfig] = None, **overrides) -> List[str]:
    """Human-readable requirement list for sign-up forms"""
    conf = _resolve_config(config, overrides)
    requirements = [f'At least {conf.min_length} characters long']

    if conf.require_uppercase:
        requirements.append('Contains uppercase letters (A-Z)')
    if conf.require_lowercase:
        requirements.append('Contains lowercase letters (a-z)')
    if conf.require_numbers:
        requirements.append('Contains numbers (0-9)')
    if conf.require_special_chars:
        requirements.append('Contains special characters (!@#$%^&*...)')

    requirements.append('No more than 3 repeating characters')
    requirements.append('Not a common password')
    requirements.append('Avoid keyboard patterns and sequences')
    return requirements


def validate_password_match(password: str, confirm_password: str) -> PasswordMatchResult:
    is_match = password == confirm_password
    return PasswordMatchResult(is_match=is_match, error=None if is_match else 'Passwords do not match')
