"""Static reference tables for the registration form."""
from typing import Dict, List

# ស្តេក/មណ្ឌល -> វួដ/សាខា
LOCATIONS: Dict[str, List[str]] = {
    "ស្តេកខាងត្បូង": [
        "វួដស្ទឹងមានជ័យទី១",
        "វួដស្ទឹងមានជ័យទី២",
        "វួដស្ទឹងមានជ័យទី៣",
        "វួដទួលទំពូង",
    ],
    "ស្តេកខាងជើង": [
        "វួដទឹកថ្លា",
        "វួដទឹកល្អក់",
        "វួដទួលគោក",
        "វួលទួលសង្កែ",
        "វួដពោធិចិនតុង",
        "សាខាសែនសុខ",
    ],
    "មណ្ឌលខាងកើត": [
        "សាខាចំការមន",
        "សាខាច្បារអំពៅ",
        "សាខាកណ្តាល",
        "សាខាតាខ្មៅទី១",
        "សាខាតាខ្មៅទី២",
        "សាខាតាខ្មៅទី៣",
    ],
    "មណ្ឌលកំពង់ចាម និង កំពង់ធំ": [
        "សាខាកំពង់ចាមទី១",
        "សាខាកំពង់ចាមទី២",
        "សាខាកំពង់ចាមទី៣",
        "សាខាកំពង់ធំ",
    ],
    "មណ្ឌលបាត់ដំបង": [
        "សាខាស្ទឹងសង្កែ",
        "សាខារតនៈ",
        "សាខា១៣មករា",
    ],
    "មណ្ឌលសៀមរាប": [
        "សាខាសៀមរាបទី១",
        "សាខាសៀមរាបទី២",
        "សាខាសៀមរាបទី៣",
    ],
}

GENDERS = ["ប្រុស", "ស្រី"]

T_SHIRT_SIZES = ["XS", "S", "M", "L", "XL", "XXL"]

PAYMENT_AGREE = "agree"
PAYMENT_NOT_AFFORDABLE = "not_affordable"
PAYMENT_OTHER = "other"

PAYMENT_STATUSES = {
    PAYMENT_AGREE: "យល់ព្រមបង់",
    PAYMENT_NOT_AFFORDABLE: "មិនមានលទ្ឋភាព",
    PAYMENT_OTHER: "ផ្សេងៗ",
}


def get_stakes() -> List[str]:
    """Stakes and districts in display order."""
    return list(LOCATIONS.keys())


def get_wards(stake: str) -> List[str]:
    """Wards listed under a stake, empty for unknown or blank stakes."""
    return list(LOCATIONS.get(stake, []))
