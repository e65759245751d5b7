"""Application constants."""

USER_AGENT = "statpipe/0.3 (+open-data ingest)"
DEFAULT_LOCALE = "en"
SUPPORTED_LOCALES = ("bg", "en")
SUPPORTED_FORMATS = ("csv", "json-stat", "multi-csv", "local")
COMMANDS = ("fetch", "analyze", "chart", "prebuild")
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20

CACHE_TTL_MS = 60 * 60 * 1000
DEFAULT_VALUE_COLUMN = "Population"
REVISION_FIELD = "_revision"
CODE_SUFFIX = "_Code"

LOCAL_DATA_SUFFIX = "-data.csv"
LOCAL_FIELDS_SUFFIX = "-fields.csv"
LOCAL_CODELISTS_SUFFIX = "-codelists.csv"

CODE_LIST_COLUMN = "Code list"
CODE_COLUMN = "Code"
CODE_LABEL_ALIASES = (
    "Name of Code list or Code in English",
    "Name_en",
    "Name",
)

TEMPORAL_KEYWORDS = (
    "year",
    "година",
    "month",
    "месец",
    "quarter",
    "тримесечие",
    "date",
    "дата",
    "time",
    "време",
    "period",
    "период",
)
GEOGRAPHIC_KEYWORDS = (
    "region",
    "област",
    "district",
    "район",
    "municipality",
    "община",
    "city",
    "град",
    "country",
    "държава",
    "location",
    "локация",
)
GAZETTEER_PLACES = (
    "софия",
    "пловдив",
    "варна",
    "бургас",
    "русе",
    "стара загора",
    "плевен",
    "сливен",
    "добрич",
    "шумен",
    "перник",
    "хасково",
    "монтана",
    "ямбол",
    "видин",
    "враца",
    "благоевград",
    "кърджали",
    "кюстендил",
    "ловеч",
    "разград",
    "силистра",
    "смолян",
    "софия-град",
    "софия-област",
    "търговище",
    "габрово",
    "пазарджик",
    "sofia",
    "plovdiv",
    "varna",
    "burgas",
    "ruse",
    "montana",
)

YEAR_MIN = 1900
YEAR_MAX = 2100
TYPE_SAMPLE_SIZE = 10
UNIQUE_VALUES_LIMIT = 100

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "dataset",
    "source",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
