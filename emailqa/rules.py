# emailqa/rules.py

# Таблицы эвристик. Передаются в экстрактор, компаратор и канонизатор URL
# как значения по умолчанию и могут быть заменены в тестах.

import re

# === Трекинговые параметры URL ===
# Параметр удаляется, если его имя начинается (без учета регистра) с любого из этих значений.
TRACKING_PARAMS = (
    # Google Analytics
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",

    # Eloqua / Marketo
    "elqTrack",
    "elqTrackId",
    "mkt_tok",

    # Mailchimp / Salesforce MC
    "mc_cid",
    "mc_eid",
    "sfmc_id",

    # Идентификаторы получателя
    "subscriber_id",
    "contact_id",
    "lead_id",

    # HubSpot
    "_hsenc",
    "_hsmi",
    "hsa_",

    # Рекламные клики
    "fbclid",
    "gclid",
    "msclkid",

    # Общие
    "trk",
    "track",
    "tracking",
    "ref",
    "source",
)

# === Селекторы "кнопок" (CTA) ===
CTA_SELECTORS = (
    "a.button",
    "a.btn",
    "a.cta",
    'a[class*="button"]',
    'a[class*="btn"]',
    'a[class*="cta"]',
    'a[style*="background"]',
    ".button a",
    ".btn a",
    ".cta a",
)

# Глаголы, с которых обычно начинается текст призыва к действию
CTA_ACTION_WORDS = (
    "shop", "buy", "get", "learn", "discover", "start", "try", "sign",
    "register", "subscribe", "download", "view", "see", "explore", "claim",
    "grab", "save",
)

# === Подвал письма ===
FOOTER_SELECTORS = (
    "footer",
    ".footer",
    '[class*="footer"]',
    "#footer",
    '[id*="footer"]',
)

# Сколько последних непустых строк считать подвалом, если подвал не найден
FOOTER_FALLBACK_LINES = 5

# Юридический текст, который проверяется, если список не задан явно
DEFAULT_FOOTER_TEXTS = (
    "all rights reserved",
    "privacy policy",
    "terms",
)

# === Отписка ===
UNSUBSCRIBE_TEXT_MARKERS = ("unsubscribe", "opt out", "opt-out")
UNSUBSCRIBE_HREF_MARKERS = ("unsubscribe", "optout", "opt-out")

# === Персонализация ===
PERSONALIZATION_PATTERNS = (
    re.compile(r"\{\{[^}]+\}\}"),            # {{firstname}}
    re.compile(r"\[\[[^\]]+\]\]"),           # [[firstname]]
    re.compile(r"%[A-Z_]+%"),                # %FIRSTNAME%
    re.compile(r"\$\{[^}]+\}"),              # ${firstname}
    re.compile(r"</?[a-z]+:[^>]+>", re.I),   # теги Marketo/SFMC
)

# Элементы, которые не относятся к видимому тексту
NON_VISIBLE_TAGS = ["script", "style", "head", "meta", "link"]

NO_TEXT_PLACEHOLDER = "[no text]"
