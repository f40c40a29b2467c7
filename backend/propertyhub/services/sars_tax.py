"""
SARS tax calculations (South Africa, 2025/2026 tax year)

Pure functions, no database access. Amounts are rands as floats rounded
half-up to cents; every function returns a plain dict so the result can
go straight into a response model or a stored report.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

TAX_YEAR = "2025/2026"

# (min, max, rate %, base amount)
TAX_BRACKETS_2025_2026 = [
    {"min": 0, "max": 237100, "rate": 18, "base_amount": 0},
    {"min": 237101, "max": 370500, "rate": 26, "base_amount": 42678},
    {"min": 370501, "max": 512800, "rate": 31, "base_amount": 77362},
    {"min": 512801, "max": 673000, "rate": 36, "base_amount": 121475},
    {"min": 673001, "max": 857900, "rate": 39, "base_amount": 179147},
    {"min": 857901, "max": 1817000, "rate": 41, "base_amount": 251258},
    {"min": 1817001, "max": math.inf, "rate": 45, "base_amount": 644489},
]

TAX_REBATES_2025_2026 = {
    "primary": 17235,
    "secondary": 9444,   # 65 and older
    "tertiary": 3145,    # 75 and older
}

TAX_THRESHOLDS_2025_2026 = {
    "below_65": 95750,
    "age_65_to_74": 148217,
    "age_75_and_over": 165689,
}

UIF_RATES = {
    "employee_rate": 0.01,
    "employer_rate": 0.01,
    "max_monthly_earnings": 17712,
}

SDL_RATES = {
    "rate": 0.01,
    "annual_threshold": 500000,
}

VAT_RATES = {
    "standard": 15,
    "zero_rated": 0,
    "exempt": 0,
}

COMPANY_TAX_RATE = 27

# SARS Interpretation Note 47 wear-and-tear classes
WEAR_AND_TEAR_RATES = {
    "MOTOR_VEHICLES": {"rate": 25, "useful_life": 4, "description": "Motor vehicles"},
    "OFFICE_FURNITURE": {"rate": 16.67, "useful_life": 6, "description": "Office furniture"},
    "COMPUTER_EQUIPMENT": {"rate": 33.33, "useful_life": 3, "description": "Computer equipment"},
    "MACHINERY": {"rate": 20, "useful_life": 5, "description": "Machinery & equipment"},
    "TOOLS": {"rate": 33.33, "useful_life": 3, "description": "Small tools"},
    "SIGNAGE": {"rate": 10, "useful_life": 10, "description": "Signage"},
    "SECURITY_EQUIPMENT": {"rate": 20, "useful_life": 5, "description": "Security equipment"},
    "HVAC": {"rate": 12.5, "useful_life": 8, "description": "Air conditioning"},
    "PLUMBING": {"rate": 10, "useful_life": 10, "description": "Plumbing installations"},
    "ELECTRICAL": {"rate": 10, "useful_life": 10, "description": "Electrical installations"},
    "BUILDING_IMPROVEMENTS": {"rate": 5, "useful_life": 20, "description": "Building improvements"},
    "OTHER": {"rate": 20, "useful_life": 5, "description": "Other assets"},
}

# IT14 deduction sections
SARS_DEDUCTION_SECTIONS = {
    "S11a_GENERAL": "S11(a) General deductions",
    "S11b_BAD_DEBTS": "S11(b) Bad debts",
    "S11c_LEGAL": "S11(c) Legal expenses",
    "S11d_REPAIRS": "S11(d) Repairs & maintenance",
    "S11e_DEPRECIATION": "S11(e) Wear & tear",
    "S11f_RENT": "S11(f) Lease premiums",
    "S11gA_RESEARCH": "S11gA Research & development",
    "S11j_DOUBTFUL_DEBTS": "S11(j) Doubtful debts allowance",
    "S13_BUILDINGS": "S13 Building allowances",
    "S18A_DONATIONS": "S18A Donations",
    "S23H_PREPAID": "S23H Prepaid expenses",
}

INCOME_SOURCE_CODES = {
    "4001": "Business income - services",
    "4003": "Business income - sales",
    "4007": "Rental income",
    "4010": "Royalties",
    "4012": "Interest received",
    "4014": "Dividends received",
    "4018": "Capital gains",
    "4026": "Other income",
}

IRP5_CODES = {
    "SALARY": "3601",
    "BONUS": "3701",
    "OVERTIME": "3702",
    "COMMISSION": "3606",
    "ALLOWANCES": "3713",
    "OTHER_INCOME": "3699",
    "PAYE": "4101",
    "UIF_EMPLOYEE": "4141",
    "PENSION_FUND": "4001",
    "MEDICAL_AID": "4005",
    "OTHER_DEDUCTIONS": "4497",
}

# Defaults for the compliance dashboard; percentages, overridable per install
DEFAULT_RATES = {
    "company_tax_rate": 27.0,
    "vat_rate": 15.0,
    "uif_employee_rate": 1.0,
    "uif_employer_rate": 1.0,
    "uif_max_monthly": 17712.0,
    "sdl_rate": 1.0,
    "sdl_threshold": 500000.0,
    "primary_rebate": 17235.0,
    "secondary_rebate": 9444.0,
    "tertiary_rebate": 3145.0,
}


def round2(value: Any) -> float:
    """Half-up rounding to cents"""
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_rand(amount: float) -> str:
    """R 12,345.67"""
    return f"R {amount:,.2f}"


def _format_bracket(bracket: Dict[str, Any]) -> str:
    upper = "∞" if bracket["max"] == math.inf else f"{bracket['max']:,}"
    return f"R{bracket['min']:,} - R{upper}"


def calculate_annual_paye(annual_taxable_income: float, age: int = 30,
                          rebates: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    """Annual income tax for an individual using the SARS tables"""
    if annual_taxable_income <= 0:
        return {
            "gross_tax": 0.0,
            "rebates": 0.0,
            "net_tax": 0.0,
            "effective_rate": 0.0,
            "bracket": "Below threshold",
            "bracket_rate": 0,
        }

    rebate_table = rebates or TAX_REBATES_2025_2026

    gross_tax = 0.0
    bracket_description = ""
    bracket_rate = 0
    for bracket in TAX_BRACKETS_2025_2026:
        # Brackets are whole rands; cents above a bracket's max fall into the next one
        if annual_taxable_income <= bracket["max"]:
            gross_tax = bracket["base_amount"] + (
                (annual_taxable_income - bracket["min"] + 1) * bracket["rate"] / 100
            )
            bracket_description = _format_bracket(bracket)
            bracket_rate = bracket["rate"]
            break

    total_rebates = rebate_table["primary"]
    if age >= 65:
        total_rebates += rebate_table["secondary"]
    if age >= 75:
        total_rebates += rebate_table["tertiary"]

    net_tax = max(0.0, gross_tax - total_rebates)
    effective_rate = net_tax / annual_taxable_income * 100

    return {
        "gross_tax": round2(gross_tax),
        "rebates": float(total_rebates),
        "net_tax": round2(net_tax),
        "effective_rate": round2(effective_rate),
        "bracket": bracket_description,
        "bracket_rate": bracket_rate,
    }


def rebates_from_rates(rates: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
    """Rebate table from a rates dict with primary_rebate etc., None for the published table"""
    if not rates:
        return None
    return {
        "primary": rates.get("primary_rebate", TAX_REBATES_2025_2026["primary"]),
        "secondary": rates.get("secondary_rebate", TAX_REBATES_2025_2026["secondary"]),
        "tertiary": rates.get("tertiary_rebate", TAX_REBATES_2025_2026["tertiary"]),
    }


def calculate_monthly_paye(monthly_gross: float, age: int = 30,
                           rebates: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    """PAYE for one month, annualising the monthly gross"""
    annual = calculate_annual_paye(monthly_gross * 12, age, rebates)
    return {
        "monthly_paye": round2(annual["net_tax"] / 12),
        "annual_breakdown": annual,
    }


def tax_threshold_for_age(age: int) -> int:
    if age >= 75:
        return TAX_THRESHOLDS_2025_2026["age_75_and_over"]
    if age >= 65:
        return TAX_THRESHOLDS_2025_2026["age_65_to_74"]
    return TAX_THRESHOLDS_2025_2026["below_65"]


def calculate_uif(monthly_remuneration: float,
                  rates: Optional[Dict[str, float]] = None) -> Dict[str, float]:
    """
    Employee and employer UIF, capped at the monthly earnings ceiling.

    rates may carry uif_employee_rate and uif_employer_rate (percent) and
    uif_max_monthly; missing keys use the published values.
    """
    rates = rates or {}
    ceiling = rates.get("uif_max_monthly", UIF_RATES["max_monthly_earnings"])
    employee_rate = rates.get("uif_employee_rate", UIF_RATES["employee_rate"] * 100) / 100
    employer_rate = rates.get("uif_employer_rate", UIF_RATES["employer_rate"] * 100) / 100
    capped = min(monthly_remuneration, ceiling)
    employee = round2(capped * employee_rate)
    employer = round2(capped * employer_rate)
    return {
        "employee_contribution": employee,
        "employer_contribution": employer,
        "total_contribution": round2(employee + employer),
    }


def calculate_sdl(monthly_payroll: float, annual_payroll: Optional[float] = None) -> Dict[str, Any]:
    """Skills Development Levy, only payable above the annual payroll threshold"""
    estimated_annual = annual_payroll or monthly_payroll * 12
    threshold = SDL_RATES["annual_threshold"]

    if estimated_annual <= threshold:
        return {
            "sdl_amount": 0.0,
            "is_applicable": False,
            "reason": f"Annual payroll R{estimated_annual:,.0f} is below R{threshold:,} threshold",
        }

    return {
        "sdl_amount": round2(monthly_payroll * SDL_RATES["rate"]),
        "is_applicable": True,
        "reason": f"1% of R{monthly_payroll:,.2f} monthly payroll",
    }


def calculate_vat(amount: float, is_inclusive: bool = True,
                  vat_rate: float = VAT_RATES["standard"]) -> Dict[str, float]:
    """Split an amount into its VAT-exclusive part and VAT"""
    if vat_rate == 0:
        return {
            "exclusive_amount": round2(amount),
            "vat_amount": 0.0,
            "inclusive_amount": round2(amount),
            "vat_rate": 0.0,
        }

    rate = vat_rate / 100
    if is_inclusive:
        exclusive = round2(amount / (1 + rate))
        vat_amount = round2(amount - exclusive)
        return {
            "exclusive_amount": exclusive,
            "vat_amount": vat_amount,
            "inclusive_amount": round2(amount),
            "vat_rate": float(vat_rate),
        }

    vat_amount = round2(amount * rate)
    return {
        "exclusive_amount": round2(amount),
        "vat_amount": vat_amount,
        "inclusive_amount": round2(amount + vat_amount),
        "vat_rate": float(vat_rate),
    }


def vat_fraction(amount: float, rate: float) -> float:
    """VAT contained in a VAT-inclusive amount (rate in percent)"""
    if not rate:
        return 0.0
    return amount * rate / (100 + rate)


def calculate_depreciation(purchase_price: float, residual_value: float = 0,
                           useful_life_years: int = 5, method: str = "STRAIGHT_LINE",
                           year_number: int = 1) -> Dict[str, float]:
    """
    Depreciation for one year of an asset's life.

    STRAIGHT_LINE writes off (cost - residual) evenly; REDUCING_BALANCE
    applies the fixed rate that reaches the residual after the useful life.
    year_number is 1-based.
    """
    if useful_life_years <= 0:
        raise ValueError("useful_life_years must be positive")

    depreciable = purchase_price - residual_value

    if method == "STRAIGHT_LINE":
        annual = round2(depreciable / useful_life_years)
        return {
            "annual_depreciation": annual,
            "monthly_depreciation": round2(annual / 12),
            "book_value_after_year": round2(max(residual_value, purchase_price - annual * year_number)),
            "depreciation_rate": round2(100 / useful_life_years),
        }

    if method != "REDUCING_BALANCE":
        raise ValueError(f"Unknown depreciation method: {method}")
    if purchase_price <= 0:
        raise ValueError("purchase_price must be positive for reducing balance")

    rate = 1 - math.pow(residual_value / purchase_price, 1 / useful_life_years)
    book_value = purchase_price
    annual = 0.0
    for _ in range(year_number):
        annual = round2(book_value * rate)
        book_value -= annual

    return {
        "annual_depreciation": annual,
        "monthly_depreciation": round2(annual / 12),
        "book_value_after_year": max(residual_value, round2(book_value)),
        "depreciation_rate": round2(rate * 100),
    }


def generate_emp201_summary(payslips: Iterable[Dict[str, Any]], monthly_payroll: float) -> Dict[str, Any]:
    """
    Monthly EMP201 totals.

    payslips: dicts with gross_pay, income_tax and uif.
    Employer UIF matches the employee contribution.
    """
    payslips = list(payslips)
    total_paye = sum(float(p.get("income_tax") or 0) for p in payslips)
    total_employee_uif = sum(float(p.get("uif") or 0) for p in payslips)
    total_employer_uif = total_employee_uif
    total_uif = total_employee_uif + total_employer_uif
    total_sdl = calculate_sdl(monthly_payroll)["sdl_amount"]

    return {
        "total_paye": round2(total_paye),
        "total_employee_uif": round2(total_employee_uif),
        "total_employer_uif": round2(total_employer_uif),
        "total_uif": round2(total_uif),
        "total_sdl": round2(total_sdl),
        "total_liability": round2(total_paye + total_uif + total_sdl),
        "employee_count": len(payslips),
        "payroll_total": round2(monthly_payroll),
    }


def calculate_provisional_tax(estimated_annual_profit: float, payment_number: int = 1,
                              previous_payments: float = 0) -> Dict[str, float]:
    """
    IRP6 provisional tax.

    Payment 1 (August) covers half the year's liability, payment 2
    (February) the full liability, payment 3 is the voluntary top-up.
    """
    if payment_number not in (1, 2, 3):
        raise ValueError("payment_number must be 1, 2 or 3")

    total_liability = round2(estimated_annual_profit * COMPANY_TAX_RATE / 100)
    percentage = 50 if payment_number == 1 else 100
    cumulative = round2(total_liability * percentage / 100)
    required = max(0.0, round2(cumulative - previous_payments))
    remaining = max(0.0, round2(total_liability - previous_payments - required))

    return {
        "total_tax_liability": total_liability,
        "required_payment": required,
        "percentage_of_total": percentage,
        "cumulative_required": cumulative,
        "remaining_after_payment": remaining,
    }


def wear_and_tear_categories() -> List[Dict[str, Any]]:
    return [
        {"category": key, **value}
        for key, value in WEAR_AND_TEAR_RATES.items()
    ]
