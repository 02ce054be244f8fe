"""
Locator Synthesizer

Turns the raw attribute record of one scanned element into a single
Playwright locator string, and classifies the element's semantic role.

Both decisions are ordered rule tables: the first rule that produces a
value wins. New heuristics are added as new rows.

Locator priority:
1. Testing attribute (data-testid, data-cy, data-test, data-qa)
2. Non-generated id
3. Short aria-label
4. name on form controls
5. Semantic input type, then placeholder
6. Short title
7. Short visible text on buttons/links
8. ARIA role + visible text
9. Structural roles alone (searchbox/textbox/combobox)
10. Meaningful class token
11. Partial href
12. Structural path
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse


FRAME_ENTER = "internal:control=enter-frame"
CHAIN = " >> "

TESTING_ATTRIBUTES = ("data-testid", "data-cy", "data-test", "data-qa")

FORM_CONTROL_TAGS = {"input", "select", "textarea", "button"}

SEMANTIC_INPUT_TYPES = {"email", "password", "tel", "search", "submit", "file", "date", "number"}

TEXT_LOCATOR_ROLES = {"button", "link"}

STRUCTURAL_ROLES = {"searchbox", "textbox", "combobox"}

MAX_LABEL_LENGTH = 60
MAX_TEXT_LENGTH = 40

# Auto-generated id patterns
GENERATED_ID_PATTERNS = [
    re.compile(r"^\d+$"),  # purely numeric
    re.compile(r"^[a-f0-9]{8,}$", re.I),  # hex-looking
    re.compile(r"^[a-f0-9]{8}-[a-f0-9]{4}-", re.I),  # UUID
    re.compile(r"^:[a-z0-9]+:$", re.I),  # React useId (:r1:)
    re.compile(r"^(ember|ext-gen|ext-comp|yui_|mui-|radix-|headlessui-|react-select-|rc_|rc-|"
               r"ng-|mat-|cdk-|j_idt|jdt_|__BVID__|downshift-|aria-|uid-|id-)", re.I),
    re.compile(r"[a-z]+[-_]?\d{4,}$", re.I),  # long numeric suffix
]

CSS_IDENTIFIER = re.compile(r"^[A-Za-z_][\w-]*$")

# Class tokens worth a locator
CLASS_VOCABULARY = (
    "btn", "button", "form", "nav", "submit", "search", "login", "logout",
    "signin", "signup", "register", "primary", "secondary", "cta", "menu",
    "tab", "toggle", "close", "cart", "checkout", "dropdown", "link", "input",
)

# Minified, hashed or CSS-in-JS generated tokens
GENERATED_CLASS_PATTERNS = [
    re.compile(r"^(css|sc|jsx|emotion|styled|makeStyles|jss)[-_]", re.I),
    re.compile(r"__[A-Za-z0-9]{5,}$"),  # CSS modules hash suffix
    re.compile(r"^[a-z]{1,3}\d"),  # minified (a1, xy9z)
    re.compile(r"^[A-Za-z0-9_-]*\d[A-Za-z0-9_-]*$"),  # any digit
    re.compile(r"^.{0,2}$"),  # too short
]


def quote(value: str) -> str:
    """Escape a value for use inside double quotes in a selector"""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def is_generated_id(value: str) -> bool:
    """True if an id looks auto-generated and is not worth a locator"""
    return any(pattern.search(value) for pattern in GENERATED_ID_PATTERNS)


def meaningful_class_token(class_name: str) -> Optional[str]:
    """First class token that is human-written and names a known concept"""
    for token in (class_name or "").split():
        if any(pattern.search(token) for pattern in GENERATED_CLASS_PATTERNS):
            continue
        if not CSS_IDENTIFIER.match(token):
            continue
        lowered = token.lower()
        if any(word in lowered for word in CLASS_VOCABULARY):
            return token
    return None


def short_clean_text(record: Dict[str, Any]) -> str:
    """Visible text usable in a text locator, or empty"""
    raw = (record.get("text") or "").strip()
    if not raw or "\n" in raw:
        return ""
    text = clean_text(raw)
    if len(text) >= MAX_TEXT_LENGTH:
        return ""
    return text


# ==================== Locator Rules ====================

def _testing_attribute(record: Dict[str, Any]) -> Optional[str]:
    testing = record.get("testing") or {}
    for attr in TESTING_ATTRIBUTES:
        value = testing.get(attr)
        if value:
            return f'[{attr}="{quote(value)}"]'
    return None


def _stable_id(record: Dict[str, Any]) -> Optional[str]:
    elem_id = record.get("id") or ""
    if not elem_id or is_generated_id(elem_id):
        return None
    if CSS_IDENTIFIER.match(elem_id):
        return f"#{elem_id}"
    return f'[id="{quote(elem_id)}"]'


def _aria_label(record: Dict[str, Any]) -> Optional[str]:
    label = record.get("ariaLabel") or ""
    if label and len(label) < MAX_LABEL_LENGTH:
        return f'[aria-label="{quote(label)}"]'
    return None


def _form_control_name(record: Dict[str, Any]) -> Optional[str]:
    tag = record.get("tag", "")
    name = record.get("name") or ""
    if name and tag in FORM_CONTROL_TAGS:
        return f'{tag}[name="{quote(name)}"]'
    return None


def _input_type_or_placeholder(record: Dict[str, Any]) -> Optional[str]:
    if record.get("tag") != "input":
        return None
    input_type = record.get("inputType") or ""
    if input_type in SEMANTIC_INPUT_TYPES:
        return f'input[type="{input_type}"]'
    placeholder = record.get("placeholder") or ""
    if placeholder:
        return f'input[placeholder="{quote(placeholder)}"]'
    return None


def _title(record: Dict[str, Any]) -> Optional[str]:
    title = record.get("title") or ""
    if title and len(title) < MAX_LABEL_LENGTH:
        return f'[title="{quote(title)}"]'
    return None


def _button_or_link_text(record: Dict[str, Any]) -> Optional[str]:
    text = short_clean_text(record)
    if not text:
        return None
    tag = record.get("tag", "")
    role = record.get("roleAttr") or ""
    if tag in ("button", "a"):
        return f'{tag}:has-text("{quote(text)}")'
    if role in TEXT_LOCATOR_ROLES:
        return f'[role="{role}"]:has-text("{quote(text)}")'
    return None


def _role_with_text(record: Dict[str, Any]) -> Optional[str]:
    role = record.get("roleAttr") or ""
    text = short_clean_text(record)
    if role and text:
        return f'role={role}[name="{quote(text)}"]'
    return None


def _structural_role(record: Dict[str, Any]) -> Optional[str]:
    role = record.get("roleAttr") or ""
    if role in STRUCTURAL_ROLES:
        return f'[role="{role}"]'
    return None


def _class_token(record: Dict[str, Any]) -> Optional[str]:
    token = meaningful_class_token(record.get("className") or "")
    if token:
        return f'{record.get("tag") or "*"}.{token}'
    return None


def _partial_href(record: Dict[str, Any]) -> Optional[str]:
    href = record.get("href") or ""
    if record.get("tag") != "a" or not href:
        return None
    path = urlparse(href).path
    if not path or path == "/":
        return None
    return f'a[href*="{quote(path)}"]'


def _structural_path(record: Dict[str, Any]) -> Optional[str]:
    return record.get("structuralPath") or record.get("tag") or None


LOCATOR_RULES: List[Tuple[str, Callable[[Dict[str, Any]], Optional[str]]]] = [
    ("testing_attribute", _testing_attribute),
    ("id", _stable_id),
    ("aria_label", _aria_label),
    ("name", _form_control_name),
    ("input_type", _input_type_or_placeholder),
    ("title", _title),
    ("text", _button_or_link_text),
    ("role_text", _role_with_text),
    ("role", _structural_role),
    ("class", _class_token),
    ("href", _partial_href),
    ("structural_path", _structural_path),
]


def qualify(locator: str, record: Dict[str, Any]) -> str:
    """Prefix a locator with the shadow-host and iframe traversal it needs"""
    prefix = []
    for frame in record.get("frames") or []:
        prefix.extend([frame, FRAME_ENTER])
    prefix.extend(record.get("shadowHosts") or [])
    if not prefix:
        return locator
    return CHAIN.join(prefix + [locator])


def synthesize(record: Dict[str, Any]) -> Tuple[str, str]:
    """
    Synthesize a locator for one raw element record.

    Args:
        record: Attribute record produced by the in-page collection script

    Returns:
        (locator, rule name that produced it)
    """
    for rule_name, rule in LOCATOR_RULES:
        locator = rule(record)
        if locator:
            return qualify(locator, record), rule_name
    # The structural path rule always yields at least the tag
    return qualify(record.get("tag") or "*", record), "tag"


# ==================== Role Rules ====================

ROLE_RULES: List[Tuple[Callable[[Dict[str, Any]], bool], str]] = [
    (lambda r: r.get("tag") == "input" and r.get("inputType") == "email", "email_input"),
    (lambda r: r.get("tag") == "input" and r.get("inputType") == "password", "password_input"),
    (lambda r: r.get("tag") == "input" and r.get("inputType") == "checkbox", "checkbox"),
    (lambda r: r.get("tag") == "input" and r.get("inputType") == "radio", "radio"),
    (lambda r: r.get("tag") == "input" and r.get("inputType") in ("submit", "button", "reset", "image"), "button"),
    (lambda r: r.get("tag") == "input", "text_input"),
    (lambda r: r.get("tag") == "textarea", "textarea"),
    (lambda r: r.get("tag") == "select", "dropdown"),
    (lambda r: r.get("tag") == "button", "button"),
    (lambda r: r.get("tag") == "a", "link"),
    (lambda r: r.get("tag") == "summary", "expandable"),
    (lambda r: r.get("roleAttr") == "button", "button"),
    (lambda r: r.get("roleAttr") == "link", "link"),
    (lambda r: r.get("roleAttr") in ("checkbox", "menuitemcheckbox"), "checkbox"),
    (lambda r: r.get("roleAttr") in ("radio", "menuitemradio"), "radio"),
    (lambda r: r.get("roleAttr") == "switch", "toggle"),
    (lambda r: r.get("roleAttr") == "tab", "tab"),
    (lambda r: r.get("roleAttr") in ("menuitem", "option"), "menu_item"),
    (lambda r: r.get("roleAttr") in ("combobox", "listbox"), "dropdown"),
    (lambda r: r.get("roleAttr") in ("textbox", "searchbox"), "text_input"),
    (lambda r: bool(r.get("ariaExpanded") or r.get("ariaHaspopup")), "expandable"),
    (lambda r: bool(re.search(r"toggle|switch", r.get("className") or "", re.I)), "toggle"),
]

GENERIC_ROLE = "interactive"


def classify_role(record: Dict[str, Any]) -> str:
    """Semantic role of a raw element record"""
    for condition, role in ROLE_RULES:
        if condition(record):
            return role
    return GENERIC_ROLE
