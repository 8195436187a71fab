"""Ordered categorization tables: XBRL concept names and row labels → category.

Two tables, both evaluated top-to-bottom with first match winning:

  Concept table, used by the structured (iXBRL) extractor.
    1. Exact local-name lookup built from the per-category concept lists
       below (us-gaap and IFRS names, most authoritative first).
    2. ``CONCEPT_PREDICATES``: contains / suffix predicates for extension
       and variant concept names the exact lists do not know.

  Label table, used by the statement table parser.
    1. ``EXACT_LABEL_RULES``: whole normalized label equality.
    2. ``CONTAINS_LABEL_RULES``: every needle must appear in the label.

A rule whose category is ``None`` is an explicit discard: the datum is
recognized but deliberately dropped (e.g. "Total liabilities and
stockholders' equity", which would otherwise hit the equity rule).

Declaration order is part of the contract; tests pin it.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from filing_metrics.models import MetricCategory as C


class ConceptEntry(NamedTuple):
    xbrl_concept: str
    display_name: str


class ConceptPredicate(NamedTuple):
    kind: str  # "contains" | "suffix"
    needle: str
    category: C | None


class LabelRule(NamedTuple):
    needles: tuple[str, ...]
    category: C | None


# ═══════════════════════════════════════════════════════════════════════════
#  INCOME STATEMENT
# ═══════════════════════════════════════════════════════════════════════════

REVENUE: list[ConceptEntry] = [
    ConceptEntry("Revenues", "Total Revenue"),
    ConceptEntry("Revenue", "Revenue"),
    ConceptEntry("RevenueFromContractWithCustomerExcludingAssessedTax",
                 "Revenue from Contract with Customer"),
    ConceptEntry("RevenueFromContractWithCustomerIncludingAssessedTax",
                 "Revenue from Contract with Customer (incl. tax)"),
    ConceptEntry("SalesRevenueNet", "Net Sales Revenue"),
    ConceptEntry("SalesRevenueGoodsNet", "Net Sales Revenue (Goods)"),
    ConceptEntry("NetRevenues", "Net Revenues"),
    ConceptEntry("TotalRevenues", "Total Revenues"),
    ConceptEntry("RevenuesNetOfInterestExpense", "Net Revenues (Banking)"),
    ConceptEntry("OperatingRevenue", "Operating Revenue"),
]

COST_OF_REVENUE: list[ConceptEntry] = [
    ConceptEntry("CostOfRevenue", "Cost of Revenue"),
    ConceptEntry("CostOfGoodsAndServicesSold", "Cost of Goods & Services Sold"),
    ConceptEntry("CostOfGoodsSold", "Cost of Goods Sold"),
    ConceptEntry("CostOfServices", "Cost of Services"),
    ConceptEntry("CostOfProductsSold", "Cost of Products Sold"),
    # IFRS
    ConceptEntry("CostOfSales", "IFRS Cost of Sales"),
]

GROSS_PROFIT: list[ConceptEntry] = [
    ConceptEntry("GrossProfit", "Gross Profit"),
    ConceptEntry("GrossProfitLoss", "Gross Profit (Loss)"),
]

OPERATING_EXPENSES: list[ConceptEntry] = [
    ConceptEntry("OperatingExpenses", "Operating Expenses"),
    ConceptEntry("OperatingCostsAndExpenses", "Operating Costs and Expenses"),
]

TOTAL_EXPENSES: list[ConceptEntry] = [
    ConceptEntry("CostsAndExpenses", "Costs and Expenses"),
]

SGA_EXPENSE: list[ConceptEntry] = [
    ConceptEntry("SellingGeneralAndAdministrativeExpense", "SG&A Expense"),
    ConceptEntry("GeneralAndAdministrativeExpense", "G&A Expense"),
    ConceptEntry("SellingAndMarketingExpense", "Selling & Marketing"),
    ConceptEntry("SellingExpense", "Selling Expense"),
]

RD_EXPENSE: list[ConceptEntry] = [
    ConceptEntry("ResearchAndDevelopmentExpense", "R&D Expense"),
    ConceptEntry("ResearchAndDevelopmentExpenseExcludingAcquiredInProcessCost",
                 "R&D Expense (excl. acquired)"),
]

OPERATING_INCOME: list[ConceptEntry] = [
    ConceptEntry("OperatingIncomeLoss", "Operating Income (Loss)"),
    ConceptEntry("IncomeLossFromOperations", "Income from Operations"),
    ConceptEntry("OperatingProfitLoss", "Operating Profit (Loss)"),
    # IFRS
    ConceptEntry("ProfitLossFromOperatingActivities", "IFRS Operating Profit"),
]

INTEREST_EXPENSE: list[ConceptEntry] = [
    ConceptEntry("InterestExpense", "Interest Expense"),
    ConceptEntry("InterestExpenseDebt", "Interest Expense on Debt"),
    ConceptEntry("InterestExpenseNonoperating", "Interest Expense (Nonoperating)"),
]

INTEREST_INCOME: list[ConceptEntry] = [
    ConceptEntry("InvestmentIncomeInterest", "Interest Income"),
    ConceptEntry("InterestIncomeOther", "Other Interest Income"),
]

OTHER_INCOME: list[ConceptEntry] = [
    ConceptEntry("NonoperatingIncomeExpense", "Other Income (Expense)"),
    ConceptEntry("OtherNonoperatingIncomeExpense", "Other Nonoperating Income (Expense)"),
]

INCOME_BEFORE_TAX: list[ConceptEntry] = [
    ConceptEntry("IncomeLossFromContinuingOperationsBeforeIncomeTaxesExtraordinaryItemsNoncontrollingInterest",
                 "Income Before Tax"),
    ConceptEntry("IncomeLossFromContinuingOperationsBeforeIncomeTaxesMinorityInterestAndIncomeLossFromEquityMethodInvestments",
                 "Income Before Tax (alt)"),
]

INCOME_TAX: list[ConceptEntry] = [
    ConceptEntry("IncomeTaxExpenseBenefit", "Income Tax Expense (Benefit)"),
    ConceptEntry("CurrentIncomeTaxExpenseBenefit", "Current Income Tax Expense"),
]

NET_INCOME: list[ConceptEntry] = [
    ConceptEntry("NetIncomeLoss", "Net Income (Loss)"),
    ConceptEntry("ProfitLoss", "Profit (Loss)"),
    ConceptEntry("NetIncomeLossAttributableToParent",
                 "Net Income (Loss) Attributable to Parent"),
    ConceptEntry("NetIncomeLossAvailableToCommonStockholdersBasic",
                 "Net Income Available to Common (Basic)"),
    # IFRS
    ConceptEntry("ProfitLossAttributableToOwnersOfParent",
                 "IFRS Profit Attributable to Parent"),
]

COMPREHENSIVE_INCOME: list[ConceptEntry] = [
    ConceptEntry("ComprehensiveIncomeNetOfTax", "Comprehensive Income"),
    ConceptEntry("ComprehensiveIncomeNetOfTaxIncludingPortionAttributableToNoncontrollingInterest",
                 "Comprehensive Income (incl. NCI)"),
]

OTHER_COMPREHENSIVE_INCOME: list[ConceptEntry] = [
    ConceptEntry("OtherComprehensiveIncomeLossNetOfTax", "Other Comprehensive Income (Loss)"),
    ConceptEntry("OtherComprehensiveIncomeLossNetOfTaxPortionAttributableToParent",
                 "Other Comprehensive Income (Loss) Attributable to Parent"),
]

DEPRECIATION_AMORTIZATION: list[ConceptEntry] = [
    ConceptEntry("DepreciationDepletionAndAmortization", "D&A"),
    ConceptEntry("DepreciationAndAmortization", "D&A (alt)"),
    ConceptEntry("DepreciationAmortizationAndAccretionNet", "D&A and Accretion"),
]

DEPRECIATION: list[ConceptEntry] = [
    ConceptEntry("Depreciation", "Depreciation"),
]

AMORTIZATION: list[ConceptEntry] = [
    ConceptEntry("AmortizationOfIntangibleAssets", "Amortization of Intangibles"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  BALANCE SHEET
# ═══════════════════════════════════════════════════════════════════════════

TOTAL_ASSETS: list[ConceptEntry] = [
    ConceptEntry("Assets", "Total Assets"),
]

CURRENT_ASSETS: list[ConceptEntry] = [
    ConceptEntry("AssetsCurrent", "Current Assets"),
    ConceptEntry("CurrentAssets", "IFRS Current Assets"),
]

CASH_AND_EQUIVALENTS: list[ConceptEntry] = [
    ConceptEntry("CashAndCashEquivalentsAtCarryingValue",
                 "Cash and Cash Equivalents"),
    ConceptEntry("Cash", "Cash"),
    # IFRS
    ConceptEntry("CashAndCashEquivalents", "IFRS Cash and Equivalents"),
]

MARKETABLE_SECURITIES: list[ConceptEntry] = [
    ConceptEntry("MarketableSecuritiesCurrent", "Marketable Securities (Current)"),
    ConceptEntry("ShortTermInvestments", "Short-Term Investments"),
    ConceptEntry("AvailableForSaleSecuritiesDebtSecuritiesCurrent",
                 "Available-for-Sale Securities (Current)"),
]

ACCOUNTS_RECEIVABLE: list[ConceptEntry] = [
    ConceptEntry("AccountsReceivableNetCurrent", "Accounts Receivable"),
    ConceptEntry("ReceivablesNetCurrent", "Receivables"),
    # IFRS
    ConceptEntry("TradeAndOtherCurrentReceivables", "IFRS Trade Receivables"),
]

INVENTORY: list[ConceptEntry] = [
    ConceptEntry("InventoryNet", "Inventory"),
    ConceptEntry("InventoryGross", "Inventory (Gross)"),
    # IFRS
    ConceptEntry("Inventories", "IFRS Inventories"),
]

RAW_MATERIALS: list[ConceptEntry] = [
    ConceptEntry("InventoryRawMaterialsNetOfReserves", "Raw Materials"),
    ConceptEntry("InventoryRawMaterials", "Raw Materials (Gross)"),
]

WORK_IN_PROCESS: list[ConceptEntry] = [
    ConceptEntry("InventoryWorkInProcessNetOfReserves", "Work in Process"),
    ConceptEntry("InventoryWorkInProcess", "Work in Process (Gross)"),
]

FINISHED_GOODS: list[ConceptEntry] = [
    ConceptEntry("InventoryFinishedGoodsNetOfReserves", "Finished Goods"),
    ConceptEntry("InventoryFinishedGoods", "Finished Goods (Gross)"),
]

PREPAID_EXPENSES: list[ConceptEntry] = [
    ConceptEntry("PrepaidExpenseCurrent", "Prepaid Expenses"),
    ConceptEntry("PrepaidExpenseAndOtherAssetsCurrent", "Prepaid Expenses & Other"),
]

OTHER_CURRENT_ASSETS: list[ConceptEntry] = [
    ConceptEntry("OtherAssetsCurrent", "Other Current Assets"),
]

FIXED_ASSETS: list[ConceptEntry] = [
    ConceptEntry("PropertyPlantAndEquipmentNet", "Property, Plant & Equipment, Net"),
    ConceptEntry("PropertyPlantAndEquipmentAndFinanceLeaseRightOfUseAssetAfterAccumulatedDepreciationAndAmortization",
                 "PP&E incl. Finance Leases"),
    # IFRS
    ConceptEntry("PropertyPlantAndEquipment", "IFRS Property, Plant & Equipment"),
]

GOODWILL: list[ConceptEntry] = [
    ConceptEntry("Goodwill", "Goodwill"),
]

INTANGIBLE_ASSETS: list[ConceptEntry] = [
    ConceptEntry("IntangibleAssetsNetExcludingGoodwill", "Intangible Assets"),
    ConceptEntry("FiniteLivedIntangibleAssetsNet", "Finite-Lived Intangibles"),
]

LONG_TERM_INVESTMENTS: list[ConceptEntry] = [
    ConceptEntry("LongTermInvestments", "Long-Term Investments"),
    ConceptEntry("MarketableSecuritiesNoncurrent", "Marketable Securities (Noncurrent)"),
]

DEFERRED_TAX_ASSETS: list[ConceptEntry] = [
    ConceptEntry("DeferredIncomeTaxAssetsNet", "Deferred Tax Assets"),
    ConceptEntry("DeferredTaxAssetsNet", "Deferred Tax Assets (alt)"),
]

OPERATING_LEASE_ASSETS: list[ConceptEntry] = [
    ConceptEntry("OperatingLeaseRightOfUseAsset", "Operating Lease ROU Assets"),
]

TOTAL_LIABILITIES: list[ConceptEntry] = [
    ConceptEntry("Liabilities", "Total Liabilities"),
]

CURRENT_LIABILITIES: list[ConceptEntry] = [
    ConceptEntry("LiabilitiesCurrent", "Current Liabilities"),
    ConceptEntry("CurrentLiabilities", "IFRS Current Liabilities"),
]

ACCOUNTS_PAYABLE: list[ConceptEntry] = [
    ConceptEntry("AccountsPayableCurrent", "Accounts Payable"),
    ConceptEntry("AccountsPayableAndAccruedLiabilitiesCurrent",
                 "Accounts Payable & Accrued"),
]

ACCRUED_EXPENSES: list[ConceptEntry] = [
    ConceptEntry("AccruedLiabilitiesCurrent", "Accrued Liabilities"),
    ConceptEntry("EmployeeRelatedLiabilitiesCurrent", "Accrued Compensation"),
]

DEFERRED_REVENUE: list[ConceptEntry] = [
    ConceptEntry("ContractWithCustomerLiabilityCurrent", "Deferred Revenue"),
    ConceptEntry("DeferredRevenueCurrent", "Deferred Revenue (Current)"),
    ConceptEntry("DeferredRevenue", "Deferred Revenue (Total)"),
]

SHORT_TERM_DEBT: list[ConceptEntry] = [
    ConceptEntry("ShortTermBorrowings", "Short-Term Borrowings"),
    ConceptEntry("DebtCurrent", "Current Debt"),
    ConceptEntry("CommercialPaper", "Commercial Paper"),
    ConceptEntry("LongTermDebtCurrent", "Current Portion of Long-Term Debt"),
    # IFRS
    ConceptEntry("CurrentBorrowings", "IFRS Current Borrowings"),
]

LONG_TERM_DEBT: list[ConceptEntry] = [
    ConceptEntry("LongTermDebtNoncurrent", "Long-Term Debt (Noncurrent)"),
    ConceptEntry("LongTermDebt", "Long-Term Debt"),
    ConceptEntry("LongTermDebtAndCapitalLeaseObligations",
                 "Long-Term Debt & Capital Lease"),
    # IFRS
    ConceptEntry("LongTermBorrowings", "IFRS Long-Term Borrowings"),
]

OPERATING_LEASE_LIABILITIES: list[ConceptEntry] = [
    ConceptEntry("OperatingLeaseLiabilityCurrent", "Operating Lease Liabilities (Current)"),
    ConceptEntry("OperatingLeaseLiability", "Operating Lease Liabilities"),
]

LONG_TERM_LEASE_LIABILITIES: list[ConceptEntry] = [
    ConceptEntry("OperatingLeaseLiabilityNoncurrent", "Operating Lease Liabilities (Noncurrent)"),
    ConceptEntry("FinanceLeaseLiabilityNoncurrent", "Finance Lease Liabilities (Noncurrent)"),
]

DEFERRED_TAX_LIABILITIES: list[ConceptEntry] = [
    ConceptEntry("DeferredIncomeTaxLiabilitiesNet", "Deferred Tax Liabilities"),
    ConceptEntry("DeferredTaxLiabilitiesNoncurrent", "Deferred Tax Liabilities (Noncurrent)"),
]

TOTAL_EQUITY: list[ConceptEntry] = [
    ConceptEntry("StockholdersEquity", "Stockholders' Equity"),
    ConceptEntry("StockholdersEquityIncludingPortionAttributableToNoncontrollingInterest",
                 "Total Equity (incl. NCI)"),
    ConceptEntry("Equity", "Equity"),
    # IFRS
    ConceptEntry("EquityAttributableToOwnersOfParent", "IFRS Equity Attributable to Parent"),
]

COMMON_STOCK: list[ConceptEntry] = [
    ConceptEntry("CommonStockValue", "Common Stock"),
    ConceptEntry("CommonStocksIncludingAdditionalPaidInCapital",
                 "Common Stock incl. APIC"),
]

ADDITIONAL_PAID_IN_CAPITAL: list[ConceptEntry] = [
    ConceptEntry("AdditionalPaidInCapital", "Additional Paid-in Capital"),
    ConceptEntry("AdditionalPaidInCapitalCommonStock", "APIC (Common)"),
]

RETAINED_EARNINGS: list[ConceptEntry] = [
    ConceptEntry("RetainedEarningsAccumulatedDeficit", "Retained Earnings (Accumulated Deficit)"),
    # IFRS
    ConceptEntry("RetainedEarnings", "IFRS Retained Earnings"),
]

TREASURY_STOCK: list[ConceptEntry] = [
    ConceptEntry("TreasuryStockValue", "Treasury Stock"),
    ConceptEntry("TreasuryStockCommonValue", "Treasury Stock (Common)"),
]

ACCUMULATED_OCI: list[ConceptEntry] = [
    ConceptEntry("AccumulatedOtherComprehensiveIncomeLossNetOfTax", "AOCI"),
]

NONCONTROLLING_INTEREST: list[ConceptEntry] = [
    ConceptEntry("MinorityInterest", "Noncontrolling Interest"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  CASH FLOW
# ═══════════════════════════════════════════════════════════════════════════

OPERATING_CASH_FLOW: list[ConceptEntry] = [
    ConceptEntry("NetCashProvidedByUsedInOperatingActivities",
                 "Operating Cash Flow"),
    ConceptEntry("NetCashProvidedByOperatingActivities",
                 "Operating Cash Flow (alt)"),
    ConceptEntry("NetCashProvidedByUsedInOperatingActivitiesContinuingOperations",
                 "Operating Cash Flow (Continuing)"),
    # IFRS
    ConceptEntry("CashFlowsFromUsedInOperatingActivities", "IFRS Operating Cash Flow"),
]

INVESTING_CASH_FLOW: list[ConceptEntry] = [
    ConceptEntry("NetCashProvidedByUsedInInvestingActivities",
                 "Investing Cash Flow"),
    ConceptEntry("NetCashProvidedByUsedInInvestingActivitiesContinuingOperations",
                 "Investing Cash Flow (Continuing)"),
    # IFRS
    ConceptEntry("CashFlowsFromUsedInInvestingActivities",
                 "IFRS Investing Cash Flow"),
]

FINANCING_CASH_FLOW: list[ConceptEntry] = [
    ConceptEntry("NetCashProvidedByUsedInFinancingActivities",
                 "Financing Cash Flow"),
    ConceptEntry("NetCashProvidedByUsedInFinancingActivitiesContinuingOperations",
                 "Financing Cash Flow (Continuing)"),
    # IFRS
    ConceptEntry("CashFlowsFromUsedInFinancingActivities",
                 "IFRS Financing Cash Flow"),
]

CAPITAL_EXPENDITURES: list[ConceptEntry] = [
    ConceptEntry("PaymentsToAcquirePropertyPlantAndEquipment",
                 "Capital Expenditures"),
    ConceptEntry("PaymentsToAcquireProductiveAssets",
                 "Payments to Acquire Assets"),
    # IFRS
    ConceptEntry("PurchaseOfPropertyPlantAndEquipmentClassifiedAsInvestingActivities",
                 "IFRS CapEx"),
]

INVESTMENT_PURCHASES: list[ConceptEntry] = [
    ConceptEntry("PaymentsToAcquireAvailableForSaleSecuritiesDebt",
                 "Purchases of Marketable Securities"),
    ConceptEntry("PaymentsToAcquireInvestments", "Purchases of Investments"),
]

INVESTMENT_PROCEEDS: list[ConceptEntry] = [
    ConceptEntry("ProceedsFromMaturitiesPrepaymentsAndCallsOfAvailableForSaleSecurities",
                 "Maturities of Marketable Securities"),
    ConceptEntry("ProceedsFromSaleOfAvailableForSaleSecuritiesDebt",
                 "Sales of Marketable Securities"),
    ConceptEntry("ProceedsFromSaleMaturityAndCollectionsOfInvestments",
                 "Proceeds from Investments"),
]

ACQUISITIONS: list[ConceptEntry] = [
    ConceptEntry("PaymentsToAcquireBusinessesNetOfCashAcquired",
                 "Acquisitions, Net of Cash Acquired"),
]

DIVIDENDS_PAID: list[ConceptEntry] = [
    ConceptEntry("PaymentsOfDividends", "Dividends Paid"),
    ConceptEntry("PaymentsOfDividendsCommonStock", "Dividends Paid (Common)"),
    # IFRS
    ConceptEntry("DividendsPaidClassifiedAsFinancingActivities", "IFRS Dividends Paid"),
]

SHARE_REPURCHASES: list[ConceptEntry] = [
    ConceptEntry("PaymentsForRepurchaseOfCommonStock", "Share Repurchases"),
    ConceptEntry("PaymentsForRepurchaseOfEquity", "Equity Repurchases"),
]

DEBT_ISSUED: list[ConceptEntry] = [
    ConceptEntry("ProceedsFromIssuanceOfLongTermDebt", "Proceeds from Long-Term Debt"),
    ConceptEntry("ProceedsFromIssuanceOfDebt", "Proceeds from Debt"),
]

DEBT_REPAID: list[ConceptEntry] = [
    ConceptEntry("RepaymentsOfLongTermDebt", "Repayments of Long-Term Debt"),
    ConceptEntry("RepaymentsOfDebt", "Repayments of Debt"),
]

STOCK_COMPENSATION: list[ConceptEntry] = [
    ConceptEntry("ShareBasedCompensation", "Stock-Based Compensation"),
    ConceptEntry("AllocatedShareBasedCompensationExpense", "Allocated Stock Compensation"),
]

WORKING_CAPITAL_CHANGES: list[ConceptEntry] = [
    ConceptEntry("IncreaseDecreaseInOperatingCapital", "Changes in Working Capital"),
]

NET_CHANGE_IN_CASH: list[ConceptEntry] = [
    ConceptEntry("CashCashEquivalentsRestrictedCashAndRestrictedCashEquivalentsPeriodIncreaseDecreaseIncludingExchangeRateEffect",
                 "Net Change in Cash"),
    ConceptEntry("CashAndCashEquivalentsPeriodIncreaseDecrease", "Net Change in Cash (alt)"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  PER-SHARE & SHARES
# ═══════════════════════════════════════════════════════════════════════════

EPS_BASIC: list[ConceptEntry] = [
    ConceptEntry("EarningsPerShareBasic", "EPS (Basic)"),
    ConceptEntry("EarningsPerShareBasicAndDiluted", "EPS (Basic & Diluted)"),
    # IFRS
    ConceptEntry("BasicEarningsLossPerShare", "IFRS EPS (Basic)"),
]

EPS_DILUTED: list[ConceptEntry] = [
    ConceptEntry("EarningsPerShareDiluted", "EPS (Diluted)"),
    # IFRS
    ConceptEntry("DilutedEarningsLossPerShare", "IFRS EPS (Diluted)"),
]

DIVIDENDS_PER_SHARE: list[ConceptEntry] = [
    ConceptEntry("CommonStockDividendsPerShareDeclared", "Dividends per Share (Declared)"),
    ConceptEntry("CommonStockDividendsPerShareCashPaid", "Dividends per Share (Paid)"),
]

SHARES_OUTSTANDING: list[ConceptEntry] = [
    ConceptEntry("WeightedAverageNumberOfSharesOutstandingBasic",
                 "Weighted Avg Shares (Basic)"),
    ConceptEntry("CommonStockSharesOutstanding", "Common Shares Outstanding"),
    ConceptEntry("WeightedAverageNumberOfShareOutstandingBasicAndDiluted",
                 "Weighted Avg Shares"),
    ConceptEntry("EntityCommonStockSharesOutstanding",
                 "Entity Common Shares Outstanding"),
]

SHARES_DILUTED: list[ConceptEntry] = [
    ConceptEntry("WeightedAverageNumberOfDilutedSharesOutstanding",
                 "Weighted Avg Shares (Diluted)"),
]

# Facts that look like a known concept but must never populate it
IGNORED: list[ConceptEntry] = [
    ConceptEntry("LiabilitiesAndStockholdersEquity", "Total Liabilities & Equity"),
    ConceptEntry("NetIncomeLossAttributableToNoncontrollingInterest",
                 "Net Income Attributable to NCI"),
    ConceptEntry("CostOfRevenueExcludingDepreciation", "Cost of Revenue excl. D&A"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  MASTER CONCEPT TABLE (first list containing a concept wins)
# ═══════════════════════════════════════════════════════════════════════════

CONCEPT_LISTS: list[tuple[C | None, list[ConceptEntry]]] = [
    (None, IGNORED),
    (C.REVENUE, REVENUE),
    (C.COST_OF_REVENUE, COST_OF_REVENUE),
    (C.GROSS_PROFIT, GROSS_PROFIT),
    (C.OPERATING_EXPENSES, OPERATING_EXPENSES),
    (C.TOTAL_EXPENSES, TOTAL_EXPENSES),
    (C.SGA_EXPENSE, SGA_EXPENSE),
    (C.RD_EXPENSE, RD_EXPENSE),
    (C.OPERATING_INCOME, OPERATING_INCOME),
    (C.INTEREST_EXPENSE, INTEREST_EXPENSE),
    (C.INTEREST_INCOME, INTEREST_INCOME),
    (C.OTHER_INCOME, OTHER_INCOME),
    (C.INCOME_BEFORE_TAX, INCOME_BEFORE_TAX),
    (C.INCOME_TAX, INCOME_TAX),
    (C.NET_INCOME, NET_INCOME),
    (C.COMPREHENSIVE_INCOME, COMPREHENSIVE_INCOME),
    (C.OTHER_COMPREHENSIVE_INCOME, OTHER_COMPREHENSIVE_INCOME),
    (C.DEPRECIATION_AMORTIZATION, DEPRECIATION_AMORTIZATION),
    (C.DEPRECIATION, DEPRECIATION),
    (C.AMORTIZATION, AMORTIZATION),
    (C.TOTAL_ASSETS, TOTAL_ASSETS),
    (C.CURRENT_ASSETS, CURRENT_ASSETS),
    (C.CASH_AND_EQUIVALENTS, CASH_AND_EQUIVALENTS),
    (C.MARKETABLE_SECURITIES, MARKETABLE_SECURITIES),
    (C.ACCOUNTS_RECEIVABLE, ACCOUNTS_RECEIVABLE),
    (C.INVENTORY, INVENTORY),
    (C.RAW_MATERIALS, RAW_MATERIALS),
    (C.WORK_IN_PROCESS, WORK_IN_PROCESS),
    (C.FINISHED_GOODS, FINISHED_GOODS),
    (C.PREPAID_EXPENSES, PREPAID_EXPENSES),
    (C.OTHER_CURRENT_ASSETS, OTHER_CURRENT_ASSETS),
    (C.FIXED_ASSETS, FIXED_ASSETS),
    (C.GOODWILL, GOODWILL),
    (C.INTANGIBLE_ASSETS, INTANGIBLE_ASSETS),
    (C.LONG_TERM_INVESTMENTS, LONG_TERM_INVESTMENTS),
    (C.DEFERRED_TAX_ASSETS, DEFERRED_TAX_ASSETS),
    (C.OPERATING_LEASE_ASSETS, OPERATING_LEASE_ASSETS),
    (C.TOTAL_LIABILITIES, TOTAL_LIABILITIES),
    (C.CURRENT_LIABILITIES, CURRENT_LIABILITIES),
    (C.ACCOUNTS_PAYABLE, ACCOUNTS_PAYABLE),
    (C.ACCRUED_EXPENSES, ACCRUED_EXPENSES),
    (C.DEFERRED_REVENUE, DEFERRED_REVENUE),
    (C.SHORT_TERM_DEBT, SHORT_TERM_DEBT),
    (C.LONG_TERM_DEBT, LONG_TERM_DEBT),
    (C.OPERATING_LEASE_LIABILITIES, OPERATING_LEASE_LIABILITIES),
    (C.LONG_TERM_LEASE_LIABILITIES, LONG_TERM_LEASE_LIABILITIES),
    (C.DEFERRED_TAX_LIABILITIES, DEFERRED_TAX_LIABILITIES),
    (C.TOTAL_EQUITY, TOTAL_EQUITY),
    (C.COMMON_STOCK, COMMON_STOCK),
    (C.ADDITIONAL_PAID_IN_CAPITAL, ADDITIONAL_PAID_IN_CAPITAL),
    (C.RETAINED_EARNINGS, RETAINED_EARNINGS),
    (C.TREASURY_STOCK, TREASURY_STOCK),
    (C.ACCUMULATED_OCI, ACCUMULATED_OCI),
    (C.NONCONTROLLING_INTEREST, NONCONTROLLING_INTEREST),
    (C.OPERATING_CASH_FLOW, OPERATING_CASH_FLOW),
    (C.INVESTING_CASH_FLOW, INVESTING_CASH_FLOW),
    (C.FINANCING_CASH_FLOW, FINANCING_CASH_FLOW),
    (C.CAPITAL_EXPENDITURES, CAPITAL_EXPENDITURES),
    (C.INVESTMENT_PURCHASES, INVESTMENT_PURCHASES),
    (C.INVESTMENT_PROCEEDS, INVESTMENT_PROCEEDS),
    (C.ACQUISITIONS, ACQUISITIONS),
    (C.DIVIDENDS_PAID, DIVIDENDS_PAID),
    (C.SHARE_REPURCHASES, SHARE_REPURCHASES),
    (C.DEBT_ISSUED, DEBT_ISSUED),
    (C.DEBT_REPAID, DEBT_REPAID),
    (C.STOCK_COMPENSATION, STOCK_COMPENSATION),
    (C.WORKING_CAPITAL_CHANGES, WORKING_CAPITAL_CHANGES),
    (C.NET_CHANGE_IN_CASH, NET_CHANGE_IN_CASH),
    (C.EPS_BASIC, EPS_BASIC),
    (C.EPS_DILUTED, EPS_DILUTED),
    (C.DIVIDENDS_PER_SHARE, DIVIDENDS_PER_SHARE),
    (C.SHARES_OUTSTANDING, SHARES_OUTSTANDING),
    (C.SHARES_DILUTED, SHARES_DILUTED),
]


class ConceptMatch(NamedTuple):
    category: C
    display_name: str
    rank: int  # position within the category's list; predicate hits rank last


def _build_exact_table() -> dict[str, tuple[C | None, str, int]]:
    table: dict[str, tuple[C | None, str, int]] = {}
    for category, entries in CONCEPT_LISTS:
        for rank, entry in enumerate(entries):
            table.setdefault(entry.xbrl_concept.lower(), (category, entry.display_name, rank))
    return table


_EXACT_CONCEPTS = _build_exact_table()

# Evaluated against the full lower-cased concept ("us-gaap:revenues")
CONCEPT_PREDICATES: list[ConceptPredicate] = [
    ConceptPredicate("contains", "earningspersharediluted", C.EPS_DILUTED),
    ConceptPredicate("contains", "earningspersharebasic", C.EPS_BASIC),
    ConceptPredicate("contains", "costofrevenue", C.COST_OF_REVENUE),
    ConceptPredicate("contains", "costofgoods", C.COST_OF_REVENUE),
    ConceptPredicate("contains", "deferredrevenue", C.DEFERRED_REVENUE),
    ConceptPredicate("contains", "revenues", C.REVENUE),
    ConceptPredicate("contains", "salesrevenuenet", C.REVENUE),
    ConceptPredicate("contains", "netincomeloss", C.NET_INCOME),
    ConceptPredicate("contains", "grossprofit", C.GROSS_PROFIT),
    ConceptPredicate("contains", "operatingincomeloss", C.OPERATING_INCOME),
    ConceptPredicate("suffix", ":assets", C.TOTAL_ASSETS),
    ConceptPredicate("suffix", ":liabilities", C.TOTAL_LIABILITIES),
    ConceptPredicate("contains", "liabilitiesandstockholdersequity", None),
    ConceptPredicate("contains", "stockholdersequity", C.TOTAL_EQUITY),
    ConceptPredicate("contains", "cashandcashequivalentsatcarryingvalue", C.CASH_AND_EQUIVALENTS),
    ConceptPredicate("contains", "netcashprovidedbyusedinoperatingactivities", C.OPERATING_CASH_FLOW),
    ConceptPredicate("contains", "netcashprovidedbyusedininvestingactivities", C.INVESTING_CASH_FLOW),
    ConceptPredicate("contains", "netcashprovidedbyusedinfinancingactivities", C.FINANCING_CASH_FLOW),
]


def concept_local_name(concept: str) -> str:
    """'us-gaap:Revenues' → 'Revenues'."""
    return concept.rsplit(":", 1)[-1].strip()


def match_concept(concept: str) -> ConceptMatch | None:
    """Map an XBRL concept name to its canonical category.

    Exact local-name entries win over predicates. Returns None for unknown
    or explicitly ignored concepts.
    """
    if not concept:
        return None
    lowered = concept.strip().lower()
    local = concept_local_name(lowered)
    hit = _EXACT_CONCEPTS.get(local)
    if hit is not None:
        category, display_name, rank = hit
        if category is None:
            return None
        return ConceptMatch(category, display_name, rank)

    for pred in CONCEPT_PREDICATES:
        matched = (
            pred.needle in lowered if pred.kind == "contains"
            else lowered.endswith(pred.needle)
        )
        if matched:
            if pred.category is None:
                return None
            return ConceptMatch(pred.category, concept_local_name(concept), 99)
    return None


def concept_category(concept: str) -> C | None:
    match = match_concept(concept)
    return match.category if match else None


# ═══════════════════════════════════════════════════════════════════════════
#  ROW LABELS
# ═══════════════════════════════════════════════════════════════════════════

_FOOTNOTE_RE = re.compile(r"\(\s*[0-9a-z]\s*\)$|\[\s*\d+\s*\]|\*+")
_WS_RE = re.compile(r"\s+")


def normalize_label(label: str) -> str:
    """Lower-case, unify quotes/hyphens/ampersands, drop footnote markers."""
    text = label.lower().replace("’", "'").replace("‘", "'")
    text = text.replace("&", " and ").replace("—", " ").replace("–", " ")
    text = text.replace("-", " ").replace("$", " ")
    text = _FOOTNOTE_RE.sub(" ", text.strip())
    text = _WS_RE.sub(" ", text).strip()
    return text.strip(" :,.|")


def _exact(category: C | None, *labels: str) -> list[LabelRule]:
    return [LabelRule((label,), category) for label in labels]


EXACT_LABEL_RULES: list[LabelRule] = [
    *_exact(C.REVENUE, "total revenue", "total revenues", "total net revenue",
            "total net revenues", "net revenue", "net revenues", "revenue",
            "revenues", "net sales", "total net sales", "sales"),
    *_exact(C.PRODUCT_REVENUE, "products", "product", "product revenue"),
    *_exact(C.SERVICE_REVENUE, "services", "service", "service revenue"),
    *_exact(C.COST_OF_REVENUE, "cost of revenue", "cost of revenues",
            "total cost of revenue", "total cost of revenues", "cost of sales",
            "total cost of sales", "cost of goods sold"),
    *_exact(C.GROSS_PROFIT, "gross profit", "gross margin", "gross profit (loss)"),
    *_exact(C.OPERATING_EXPENSES, "total operating expenses", "operating expenses"),
    *_exact(C.TOTAL_EXPENSES, "total costs and expenses", "costs and expenses",
            "total expenses"),
    *_exact(C.OPERATING_INCOME, "operating income", "operating income (loss)",
            "income from operations", "loss from operations",
            "income (loss) from operations", "operating loss"),
    *_exact(C.NET_INCOME, "net income", "net loss", "net income (loss)",
            "net earnings", "net (loss) income"),
    *_exact(C.COMPREHENSIVE_INCOME, "comprehensive income", "total comprehensive income",
            "comprehensive income (loss)"),
    *_exact(C.TOTAL_ASSETS, "total assets"),
    *_exact(C.CURRENT_ASSETS, "total current assets"),
    *_exact(C.TOTAL_LIABILITIES, "total liabilities"),
    *_exact(C.CURRENT_LIABILITIES, "total current liabilities"),
    *_exact(None, "total liabilities and stockholders' equity",
            "total liabilities and shareholders' equity", "total liabilities and equity"),
    *_exact(C.TOTAL_EQUITY, "total stockholders' equity", "total shareholders' equity",
            "total equity", "total stockholders' equity (deficit)",
            "total stockholders' deficit"),
    *_exact(C.CASH_AND_EQUIVALENTS, "cash and cash equivalents"),
    *_exact(C.INVENTORY, "inventories", "inventory"),
    *_exact(C.GOODWILL, "goodwill"),
    *_exact(C.ACCOUNTS_PAYABLE, "accounts payable"),
    *_exact(C.RETAINED_EARNINGS, "retained earnings", "accumulated deficit",
            "retained earnings (accumulated deficit)"),
]

CONTAINS_LABEL_RULES: list[LabelRule] = [
    # Discards: these would otherwise hit an equity or income rule below
    LabelRule(("liabilities and", "equity"), None),
    LabelRule(("liabilities and", "deficit"), None),
    LabelRule(("attributable to noncontrolling",), None),
    LabelRule(("attributable to non controlling",), None),
    LabelRule(("proceeds from issuance", "stock"), None),
    LabelRule(("taxes payable",), None),
    LabelRule(("other current liabilities",), None),
    # Per share & shares
    LabelRule(("dividends", "per share"), C.DIVIDENDS_PER_SHARE),
    LabelRule(("declared per",), C.DIVIDENDS_PER_SHARE),
    LabelRule(("book value per share",), C.BOOK_VALUE_PER_SHARE),
    LabelRule(("per share", "diluted"), C.EPS_DILUTED),
    LabelRule(("per share", "basic"), C.EPS_BASIC),
    LabelRule(("earnings per share",), C.EPS_BASIC),
    LabelRule(("net income per share",), C.EPS_BASIC),
    LabelRule(("weighted", "diluted"), C.SHARES_DILUTED),
    LabelRule(("diluted", "shares"), C.SHARES_DILUTED),
    LabelRule(("weighted", "basic"), C.SHARES_OUTSTANDING),
    LabelRule(("shares outstanding",), C.SHARES_OUTSTANDING),
    # Cash flow ("operating activities" is checked before any "cash" rule)
    LabelRule(("operating activities",), C.OPERATING_CASH_FLOW),
    LabelRule(("investing activities",), C.INVESTING_CASH_FLOW),
    LabelRule(("financing activities",), C.FINANCING_CASH_FLOW),
    LabelRule(("free cash flow",), C.FREE_CASH_FLOW),
    LabelRule(("purchases of property",), C.CAPITAL_EXPENDITURES),
    LabelRule(("payments for acquisition of property",), C.CAPITAL_EXPENDITURES),
    LabelRule(("capital expenditure",), C.CAPITAL_EXPENDITURES),
    LabelRule(("purchases of marketable",), C.INVESTMENT_PURCHASES),
    LabelRule(("purchases of investments",), C.INVESTMENT_PURCHASES),
    LabelRule(("maturities of marketable",), C.INVESTMENT_PROCEEDS),
    LabelRule(("sales of marketable",), C.INVESTMENT_PROCEEDS),
    LabelRule(("proceeds from", "investments"), C.INVESTMENT_PROCEEDS),
    LabelRule(("acquisitions", "net of cash"), C.ACQUISITIONS),
    LabelRule(("repurchase",), C.SHARE_REPURCHASES),
    LabelRule(("dividends paid",), C.DIVIDENDS_PAID),
    LabelRule(("payments for dividends",), C.DIVIDENDS_PAID),
    LabelRule(("proceeds from issuance", "debt"), C.DEBT_ISSUED),
    LabelRule(("repayments of", "debt"), C.DEBT_REPAID),
    LabelRule(("stock based compensation",), C.STOCK_COMPENSATION),
    LabelRule(("share based compensation",), C.STOCK_COMPENSATION),
    LabelRule(("increase (decrease) in cash",), C.NET_CHANGE_IN_CASH),
    LabelRule(("net increase", "cash"), C.NET_CHANGE_IN_CASH),
    LabelRule(("net decrease", "cash"), C.NET_CHANGE_IN_CASH),
    LabelRule(("net change in cash",), C.NET_CHANGE_IN_CASH),
    LabelRule(("changes in operating assets",), C.WORKING_CAPITAL_CHANGES),
    # Fixed assets before depreciation ("net of accumulated depreciation")
    LabelRule(("property, plant",), C.FIXED_ASSETS),
    LabelRule(("property and equipment",), C.FIXED_ASSETS),
    LabelRule(("depreciation and amortization",), C.DEPRECIATION_AMORTIZATION),
    LabelRule(("depreciation",), C.DEPRECIATION),
    LabelRule(("amortization",), C.AMORTIZATION),
    # Income statement
    LabelRule(("cost of revenue",), C.COST_OF_REVENUE),
    LabelRule(("cost of sales",), C.COST_OF_REVENUE),
    LabelRule(("cost of goods",), C.COST_OF_REVENUE),
    LabelRule(("gross profit",), C.GROSS_PROFIT),
    LabelRule(("gross margin",), C.GROSS_PROFIT),
    LabelRule(("research and development",), C.RD_EXPENSE),
    LabelRule(("selling, general",), C.SGA_EXPENSE),
    LabelRule(("general and administrative",), C.SGA_EXPENSE),
    LabelRule(("sales and marketing",), C.SGA_EXPENSE),
    LabelRule(("total operating expenses",), C.OPERATING_EXPENSES),
    LabelRule(("costs and expenses",), C.TOTAL_EXPENSES),
    LabelRule(("operating income",), C.OPERATING_INCOME),
    LabelRule(("income from operations",), C.OPERATING_INCOME),
    LabelRule(("loss from operations",), C.OPERATING_INCOME),
    LabelRule(("operating loss",), C.OPERATING_INCOME),
    LabelRule(("interest expense",), C.INTEREST_EXPENSE),
    LabelRule(("interest income",), C.INTEREST_INCOME),
    LabelRule(("other income",), C.OTHER_INCOME),
    LabelRule(("before income taxes",), C.INCOME_BEFORE_TAX),
    LabelRule(("before provision",), C.INCOME_BEFORE_TAX),
    LabelRule(("provision for income taxes",), C.INCOME_TAX),
    LabelRule(("income tax expense",), C.INCOME_TAX),
    LabelRule(("accumulated other comprehensive",), C.ACCUMULATED_OCI),
    LabelRule(("other comprehensive",), C.OTHER_COMPREHENSIVE_INCOME),
    LabelRule(("comprehensive income",), C.COMPREHENSIVE_INCOME),
    LabelRule(("net income",), C.NET_INCOME),
    LabelRule(("net loss",), C.NET_INCOME),
    LabelRule(("net earnings",), C.NET_INCOME),
    LabelRule(("ebitda",), C.EBITDA),
    # Balance sheet: assets
    LabelRule(("cash and cash equivalents",), C.CASH_AND_EQUIVALENTS),
    LabelRule(("marketable securities",), C.MARKETABLE_SECURITIES),
    LabelRule(("short term investments",), C.MARKETABLE_SECURITIES),
    LabelRule(("accounts receivable",), C.ACCOUNTS_RECEIVABLE),
    LabelRule(("receivables",), C.ACCOUNTS_RECEIVABLE),
    LabelRule(("raw materials",), C.RAW_MATERIALS),
    LabelRule(("work in process",), C.WORK_IN_PROCESS),
    LabelRule(("finished goods",), C.FINISHED_GOODS),
    LabelRule(("inventor",), C.INVENTORY),
    LabelRule(("prepaid",), C.PREPAID_EXPENSES),
    LabelRule(("other current assets",), C.OTHER_CURRENT_ASSETS),
    LabelRule(("current assets",), C.CURRENT_ASSETS),
    LabelRule(("goodwill",), C.GOODWILL),
    LabelRule(("intangible",), C.INTANGIBLE_ASSETS),
    LabelRule(("long term investments",), C.LONG_TERM_INVESTMENTS),
    LabelRule(("deferred tax assets",), C.DEFERRED_TAX_ASSETS),
    LabelRule(("right of use",), C.OPERATING_LEASE_ASSETS),
    LabelRule(("total assets",), C.TOTAL_ASSETS),
    # Balance sheet: liabilities
    LabelRule(("deferred tax liabilities",), C.DEFERRED_TAX_LIABILITIES),
    LabelRule(("lease liabilities", "non current"), C.LONG_TERM_LEASE_LIABILITIES),
    LabelRule(("lease liabilities", "noncurrent"), C.LONG_TERM_LEASE_LIABILITIES),
    LabelRule(("lease liabilities",), C.OPERATING_LEASE_LIABILITIES),
    LabelRule(("current liabilities",), C.CURRENT_LIABILITIES),
    LabelRule(("total liabilities",), C.TOTAL_LIABILITIES),
    LabelRule(("accounts payable",), C.ACCOUNTS_PAYABLE),
    LabelRule(("accrued",), C.ACCRUED_EXPENSES),
    LabelRule(("deferred revenue",), C.DEFERRED_REVENUE),
    LabelRule(("unearned revenue",), C.DEFERRED_REVENUE),
    LabelRule(("commercial paper",), C.SHORT_TERM_DEBT),
    LabelRule(("short term debt",), C.SHORT_TERM_DEBT),
    LabelRule(("short term borrowings",), C.SHORT_TERM_DEBT),
    LabelRule(("current portion of long term debt",), C.SHORT_TERM_DEBT),
    LabelRule(("long term debt",), C.LONG_TERM_DEBT),
    LabelRule(("term debt",), C.LONG_TERM_DEBT),
    # Balance sheet: equity
    LabelRule(("paid in capital",), C.ADDITIONAL_PAID_IN_CAPITAL),
    LabelRule(("treasury stock",), C.TREASURY_STOCK),
    LabelRule(("common stock",), C.COMMON_STOCK),
    LabelRule(("retained earnings",), C.RETAINED_EARNINGS),
    LabelRule(("accumulated deficit",), C.RETAINED_EARNINGS),
    LabelRule(("noncontrolling interest",), C.NONCONTROLLING_INTEREST),
    LabelRule(("non controlling interest",), C.NONCONTROLLING_INTEREST),
    LabelRule(("stockholders' equity",), C.TOTAL_EQUITY),
    LabelRule(("shareholders' equity",), C.TOTAL_EQUITY),
    LabelRule(("total equity",), C.TOTAL_EQUITY),
    # Generic revenue last so every "... revenue" rule above gets first pick
    LabelRule(("revenue",), C.REVENUE),
    LabelRule(("net sales",), C.REVENUE),
]


def label_category(label: str) -> C | None:
    """Map a statement row label to its canonical category.

    All exact rules are tried before any contains rule; within each list
    the first matching rule wins.
    """
    norm = normalize_label(label)
    if not norm:
        return None
    for rule in EXACT_LABEL_RULES:
        if norm == rule.needles[0]:
            return rule.category
    for rule in CONTAINS_LABEL_RULES:
        if all(needle in norm for needle in rule.needles):
            return rule.category
    return None
