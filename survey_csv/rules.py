"""
Fixed format rules for the survey CSV.

This file exists to make the persisted layout explicit and enforceable.
"""

FIELD_ORDER = ("name", "phone", "region", "occupation", "timestamp")
CSV_HEADER = "姓名,電話,地區,工作性質,提交時間"

DELIMITER = ","
QUOTE = '"'
LINE_SEPARATOR = "\n"

TARGET_ENCODING = "utf-8-sig"  # UTF-8 with BOM, for spreadsheet apps
STORAGE_KEY = "survey_responses_csv"
EXPORT_FILENAME_PATTERN = "survey_responses_{stamp}.csv"

# Taiwan regions (22 counties and cities)
TAIWAN_REGIONS = (
    "台北市", "新北市", "桃園市", "台中市", "台南市", "高雄市",
    "基隆市", "新竹市", "新竹縣", "苗栗縣", "彰化縣", "南投縣",
    "雲林縣", "嘉義市", "嘉義縣", "屏東縣", "宜蘭縣", "花蓮縣",
    "台東縣", "澎湖縣", "金門縣", "連江縣",
)

OCCUPATION_TYPES = ("藥師", "藥助", "其他")
