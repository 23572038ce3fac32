"""Hand-written demo rows and the text pools used for generated rows.

Curated rows reference customers by their position in ``CUSTOMERS`` (1-based),
which is also their ``customer_id`` once loaded into an empty table.
"""

from __future__ import annotations

from datetime import date

from contracts.records import Customer, CustomerFeedback, FraudPattern, Merchant

# (first, last, email, phone, address, city, state, zip, birth date, risk, verified)
_CUSTOMER_ROWS: tuple[tuple, ...] = (
    ("John", "Smith", "john.smith@email.com", "555-0101", "123 Main St", "New York", "NY", "10001", "1985-03-15", 0.15, True),
    ("Emily", "Johnson", "emily.johnson@email.com", "555-0102", "456 Oak Ave", "Los Angeles", "CA", "90210", "1990-07-22", 0.08, True),
    ("Michael", "Brown", "michael.brown@email.com", "555-0103", "789 Pine Rd", "Chicago", "IL", "60601", "1982-11-30", 0.45, False),
    ("Sarah", "Davis", "sarah.davis@email.com", "555-0104", "321 Elm St", "Houston", "TX", "77001", "1988-05-12", 0.22, True),
    ("David", "Wilson", "david.wilson@email.com", "555-0105", "654 Maple Dr", "Phoenix", "AZ", "85001", "1992-09-08", 0.67, False),
    ("Jessica", "Miller", "jessica.miller@email.com", "555-0106", "987 Cedar Ln", "Philadelphia", "PA", "19101", "1987-01-25", 0.12, True),
    ("James", "Anderson", "james.anderson@email.com", "555-0107", "147 Birch Ave", "San Antonio", "TX", "78201", "1983-12-03", 0.33, True),
    ("Ashley", "Taylor", "ashley.taylor@email.com", "555-0108", "258 Walnut St", "San Diego", "CA", "92101", "1991-04-17", 0.19, True),
    ("Christopher", "Thomas", "chris.thomas@email.com", "555-0109", "369 Spruce Rd", "Dallas", "TX", "75201", "1986-08-14", 0.41, False),
    ("Amanda", "Jackson", "amanda.jackson@email.com", "555-0110", "741 Poplar Dr", "San Jose", "CA", "95101", "1989-06-21", 0.28, True),
    ("Matthew", "White", "matthew.white@email.com", "555-0111", "852 Hickory Ln", "Austin", "TX", "73301", "1984-10-09", 0.55, False),
    ("Jennifer", "Harris", "jennifer.harris@email.com", "555-0112", "963 Ash Ave", "Jacksonville", "FL", "32099", "1993-02-28", 0.11, True),
    ("Daniel", "Martin", "daniel.martin@email.com", "555-0113", "159 Beech St", "Fort Worth", "TX", "76101", "1981-07-16", 0.38, True),
    ("Michelle", "Thompson", "michelle.thompson@email.com", "555-0114", "357 Sycamore Rd", "Columbus", "OH", "43085", "1990-11-05", 0.24, True),
    ("Robert", "Garcia", "robert.garcia@email.com", "555-0115", "486 Willow Dr", "Charlotte", "NC", "28201", "1987-03-12", 0.47, False),
    ("Lisa", "Martinez", "lisa.martinez@email.com", "555-0116", "579 Cherry Ln", "San Francisco", "CA", "94101", "1988-09-23", 0.16, True),
    ("William", "Robinson", "william.robinson@email.com", "555-0117", "684 Magnolia Ave", "Indianapolis", "IN", "46201", "1985-12-07", 0.29, True),
    ("Karen", "Clark", "karen.clark@email.com", "555-0118", "791 Dogwood St", "Seattle", "WA", "98101", "1992-04-14", 0.13, True),
    ("Joseph", "Rodriguez", "joseph.rodriguez@email.com", "555-0119", "846 Redwood Rd", "Denver", "CO", "80201", "1983-08-30", 0.52, False),
    ("Nancy", "Lewis", "nancy.lewis@email.com", "555-0120", "913 Fir Dr", "Washington", "DC", "20001", "1989-01-18", 0.21, True),
    ("Thomas", "Lee", "thomas.lee@email.com", "555-0121", "124 Grove St", "Boston", "MA", "02101", "1986-05-25", 0.34, True),
    ("Maria", "Walker", "maria.walker@email.com", "555-0122", "235 Park Ave", "El Paso", "TX", "79901", "1991-09-12", 0.18, True),
    ("Charles", "Hall", "charles.hall@email.com", "555-0123", "346 River Rd", "Detroit", "MI", "48201", "1984-02-08", 0.43, False),
    ("Patricia", "Allen", "patricia.allen@email.com", "555-0124", "457 Lake Dr", "Nashville", "TN", "37201", "1988-06-19", 0.26, True),
    ("Richard", "Young", "richard.young@email.com", "555-0125", "568 Hill Ln", "Memphis", "TN", "38101", "1990-10-03", 0.37, True),
    ("Linda", "Hernandez", "linda.hernandez@email.com", "555-0126", "679 Valley Ave", "Portland", "OR", "97201", "1987-03-27", 0.14, True),
    ("Mark", "King", "mark.king@email.com", "555-0127", "781 Mountain St", "Oklahoma City", "OK", "73101", "1985-07-11", 0.49, False),
    ("Susan", "Wright", "susan.wright@email.com", "555-0128", "892 Forest Rd", "Las Vegas", "NV", "89101", "1992-11-24", 0.23, True),
    ("Steven", "Lopez", "steven.lopez@email.com", "555-0129", "934 Meadow Dr", "Louisville", "KY", "40201", "1983-04-15", 0.41, True),
    ("Betty", "Scott", "betty.scott@email.com", "555-0130", "145 Garden Ln", "Baltimore", "MD", "21201", "1989-08-02", 0.17, True),
    ("Kenneth", "Green", "kenneth.green@email.com", "555-0131", "256 Spring Ave", "Milwaukee", "WI", "53201", "1986-12-18", 0.32, True),
    ("Helen", "Adams", "helen.adams@email.com", "555-0132", "367 Summer St", "Albuquerque", "NM", "87101", "1988-01-06", 0.25, True),
    ("Paul", "Baker", "paul.baker@email.com", "555-0133", "478 Winter Rd", "Tucson", "AZ", "85701", "1991-05-22", 0.39, False),
    ("Dorothy", "Gonzalez", "dorothy.gonzalez@email.com", "555-0134", "589 Autumn Dr", "Fresno", "CA", "93701", "1984-09-13", 0.44, False),
    ("Edward", "Nelson", "edward.nelson@email.com", "555-0135", "691 Peace Ln", "Sacramento", "CA", "94201", "1987-02-28", 0.20, True),
    ("Sandra", "Carter", "sandra.carter@email.com", "555-0136", "712 Hope Ave", "Long Beach", "CA", "90801", "1990-06-07", 0.31, True),
    ("Brian", "Mitchell", "brian.mitchell@email.com", "555-0137", "823 Faith St", "Kansas City", "MO", "64101", "1985-10-21", 0.46, False),
    ("Donna", "Perez", "donna.perez@email.com", "555-0138", "934 Joy Rd", "Mesa", "AZ", "85201", "1988-03-14", 0.27, True),
    ("Donald", "Roberts", "donald.roberts@email.com", "555-0139", "145 Love Dr", "Virginia Beach", "VA", "23451", "1992-07-29", 0.35, True),
    ("Carol", "Turner", "carol.turner@email.com", "555-0140", "256 Grace Ln", "Atlanta", "GA", "30301", "1983-11-16", 0.42, False),
)

CUSTOMERS: tuple[Customer, ...] = tuple(
    Customer(
        first_name=first,
        last_name=last,
        email=email,
        phone=phone,
        address=address,
        city=city,
        state=state,
        zip_code=zip_code,
        date_of_birth=date.fromisoformat(born),
        risk_score=risk,
        is_verified=verified,
    )
    for (first, last, email, phone, address, city, state, zip_code, born, risk, verified) in _CUSTOMER_ROWS
)

FEEDBACK: tuple[CustomerFeedback, ...] = (
    CustomerFeedback(1, "Great service! Very satisfied with the transaction process. The interface is user-friendly and secure.", 0.85, "web"),
    CustomerFeedback(2, "Had some issues with payment processing. The system seemed slow and unreliable at times.", -0.32, "mobile"),
    CustomerFeedback(3, "Excellent customer support. They helped me resolve my account issues quickly and professionally.", 0.78, "phone"),
    CustomerFeedback(4, "The fraud detection system blocked my legitimate transaction. Very frustrating experience.", -0.65, "web"),
    CustomerFeedback(5, "Love the new features! The security measures give me confidence in using this platform.", 0.72, "mobile"),
    CustomerFeedback(6, "Transaction failed multiple times. Customer service was not helpful and seemed inexperienced.", -0.58, "phone"),
    CustomerFeedback(7, "Quick and easy transactions. The mobile app works perfectly and is very intuitive.", 0.81, "mobile"),
    CustomerFeedback(8, "Concerned about recent security breach reports. Need better communication about security measures.", -0.41, "web"),
    CustomerFeedback(9, "Outstanding fraud protection! Caught suspicious activity on my account before I even noticed.", 0.89, "email"),
    CustomerFeedback(10, "Website crashes frequently during peak hours. Very poor user experience and reliability.", -0.73, "web"),
    CustomerFeedback(11, "Helpful fraud alerts via SMS. Appreciate the proactive approach to account security.", 0.67, "sms"),
    CustomerFeedback(12, "Transaction limits are too restrictive. Need more flexibility for business accounts.", -0.28, "web"),
    CustomerFeedback(13, "Impressed with the AI-powered recommendations. They actually understand my spending patterns.", 0.74, "mobile"),
    CustomerFeedback(14, "Account was frozen without proper notification. Poor customer communication and service.", -0.69, "phone"),
    CustomerFeedback(15, "Best fraud detection in the industry! Never had any issues with unauthorized transactions.", 0.92, "web"),
    CustomerFeedback(16, "The verification process is too complicated and time-consuming. Needs simplification.", -0.45, "mobile"),
    CustomerFeedback(17, "Real-time transaction notifications are very helpful. Great security feature implementation.", 0.79, "email"),
    CustomerFeedback(18, "Had a false positive on fraud detection. But appreciate the cautious approach to security.", 0.23, "web"),
    CustomerFeedback(19, "Customer service resolved my issue in minutes. Very professional and knowledgeable staff.", 0.86, "phone"),
    CustomerFeedback(20, "System downtime during important transaction. Lost money due to delayed processing.", -0.81, "web"),
)

MERCHANTS: tuple[Merchant, ...] = (
    Merchant("Amazon", "E-commerce", 0.15, "USA", "Seattle", "Online retail marketplace"),
    Merchant("Walmart", "Retail", 0.12, "USA", "Bentonville", "Physical and online retail"),
    Merchant("Shell Gas Station", "Gas Station", 0.25, "USA", "Houston", "Fuel and convenience store"),
    Merchant("Starbucks", "Restaurant", 0.08, "USA", "Seattle", "Coffee shop chain"),
    Merchant("Unknown Merchant XYZ", "Unknown", 0.85, "Unknown", "Unknown", "Suspicious merchant with limited verification"),
    Merchant("Apple Store", "Electronics", 0.10, "USA", "Cupertino", "Technology products retailer"),
    Merchant("Target", "Retail", 0.14, "USA", "Minneapolis", "General merchandise retailer"),
    Merchant("McDonald's", "Restaurant", 0.09, "USA", "Chicago", "Fast food restaurant chain"),
    Merchant("CVS Pharmacy", "Pharmacy", 0.11, "USA", "Woonsocket", "Pharmacy and health products"),
    Merchant("Sketchy Online Store", "E-commerce", 0.92, "Unknown", "Unknown", "High-risk online merchant with poor reputation"),
)

# Transaction dates are assigned by the generator.
# (customer, amount, type, merchant, category, country, city, method, card, fraudulent, score, notes)
CURATED_TRANSACTIONS: tuple[tuple, ...] = (
    (1, 45.67, "purchase", "Amazon", "E-commerce", "USA", "Seattle", "credit_card", "1234", False, 0.12, "Regular online purchase for household items"),
    (1, 89.23, "purchase", "Walmart", "Retail", "USA", "Bentonville", "debit_card", "1234", False, 0.08, "Weekly grocery shopping"),
    (2, 156.78, "purchase", "Apple Store", "Electronics", "USA", "Cupertino", "credit_card", "5678", False, 0.15, "Purchase of phone accessories"),
    (2, 25.50, "purchase", "Starbucks", "Restaurant", "USA", "Seattle", "mobile_pay", "5678", False, 0.05, "Daily coffee purchase"),
    (3, 78.90, "purchase", "Target", "Retail", "USA", "Minneapolis", "credit_card", "9012", False, 0.10, "Clothing and personal items"),
    (4, 2500.00, "purchase", "Unknown Merchant XYZ", "Unknown", "Unknown", "Unknown", "credit_card", "3456", True, 0.95, "Suspicious high-value transaction from unverified merchant"),
    (5, 1200.00, "withdrawal", "ATM Location Unknown", "ATM", "Foreign", "Unknown", "atm_card", "7890", True, 0.87, "Large cash withdrawal from foreign location at unusual time"),
    (3, 3500.00, "purchase", "Sketchy Online Store", "E-commerce", "Unknown", "Unknown", "credit_card", "9012", True, 0.98, "High-risk merchant transaction with unusual amount pattern"),
    (6, 34.56, "purchase", "McDonald's", "Restaurant", "USA", "Chicago", "credit_card", "2345", False, 0.06, "Fast food purchase during lunch time"),
    (7, 67.89, "purchase", "CVS Pharmacy", "Pharmacy", "USA", "Woonsocket", "debit_card", "6789", False, 0.09, "Prescription and health products"),
    (8, 123.45, "purchase", "Shell Gas Station", "Gas Station", "USA", "Houston", "credit_card", "0123", False, 0.18, "Fuel purchase and convenience items"),
    (9, 45.00, "purchase", "Starbucks", "Restaurant", "USA", "Seattle", "mobile_pay", "4567", False, 0.04, "Coffee and breakfast items"),
    (10, 234.67, "purchase", "Amazon", "E-commerce", "USA", "Seattle", "credit_card", "8901", False, 0.13, "Electronics and home improvement items"),
    (11, 999.99, "purchase", "Unknown Merchant XYZ", "Unknown", "Unknown", "Unknown", "credit_card", "2346", True, 0.91, "Repeated pattern from high-risk merchant"),
    (12, 50.00, "purchase", "Starbucks", "Restaurant", "USA", "Seattle", "credit_card", "5679", False, 0.07, "Normal coffee shop transaction"),
    (12, 4500.00, "purchase", "Unknown Merchant XYZ", "Unknown", "Unknown", "Unknown", "credit_card", "5679", True, 0.96, "Immediate high-value suspicious transaction after normal purchase"),
    (13, 175.50, "purchase", "Target", "Retail", "USA", "Minneapolis", "debit_card", "9013", False, 0.11, "Regular retail shopping"),
    (14, 89.99, "purchase", "Apple Store", "Electronics", "USA", "Cupertino", "credit_card", "3457", False, 0.14, "Technology accessories purchase"),
    (15, 2100.00, "withdrawal", "ATM Location Unknown", "ATM", "Foreign", "Unknown", "atm_card", "7891", True, 0.89, "Large foreign ATM withdrawal unusual for customer profile"),
    (16, 28.75, "purchase", "McDonald's", "Restaurant", "USA", "Chicago", "mobile_pay", "1235", False, 0.05, "Quick service restaurant transaction"),
    (17, 145.30, "purchase", "CVS Pharmacy", "Pharmacy", "USA", "Woonsocket", "credit_card", "4568", False, 0.10, "Health and wellness products"),
    (18, 65.80, "purchase", "Shell Gas Station", "Gas Station", "USA", "Houston", "debit_card", "8902", False, 0.19, "Fuel and travel convenience items"),
)

FRAUD_PATTERNS: tuple[FraudPattern, ...] = (
    FraudPattern(
        "High-Value Foreign Transaction",
        "Large transactions from foreign or unknown locations",
        "amount > 1000 AND (location_country != 'USA' OR location_country = 'Unknown')",
        0.85,
    ),
    FraudPattern(
        "Rapid Transaction Sequence",
        "Multiple transactions in short time window",
        "Multiple transactions within 5 minutes with different merchants",
        0.75,
    ),
    FraudPattern(
        "Unknown Merchant Risk",
        "Transactions with unverified or high-risk merchants",
        "merchant_category = 'Unknown' OR merchant_name LIKE '%Unknown%' OR merchant_name LIKE '%Sketchy%'",
        0.90,
    ),
    FraudPattern(
        "Unusual Time Pattern",
        "Transactions outside normal customer behavior time",
        "Transaction time significantly different from customer's typical pattern",
        0.60,
    ),
    FraudPattern(
        "Geographic Anomaly",
        "Transactions from locations inconsistent with customer profile",
        "Location differs significantly from customer's registered address and recent history",
        0.70,
    ),
    FraudPattern(
        "Amount Anomaly",
        "Transaction amounts significantly different from customer baseline",
        "Amount is 3+ standard deviations from customer's average transaction amount",
        0.65,
    ),
    FraudPattern(
        "Payment Method Switch",
        "Sudden change in preferred payment method",
        "Different payment method used compared to recent transaction history",
        0.45,
    ),
    FraudPattern(
        "Velocity Check Failure",
        "Too many transactions in short time period",
        "More than 5 transactions within 1 hour",
        0.80,
    ),
)

# Generated customers: city/state by customer number modulo 10.
GENERATED_LOCATIONS: tuple[tuple[str, str], ...] = (
    ("Miami", "FL"),
    ("Tampa", "FL"),
    ("Orlando", "FL"),
    ("Cleveland", "OH"),
    ("Cincinnati", "OH"),
    ("Pittsburgh", "PA"),
    ("St. Louis", "MO"),
    ("New Orleans", "LA"),
    ("Buffalo", "NY"),
    ("Raleigh", "NC"),
)

FEEDBACK_TEXTS: tuple[str, ...] = (
    "Transaction was processed smoothly without any issues. Very satisfied with the service quality.",
    "Experienced delays in payment processing. The system needs performance improvements.",
    "Excellent fraud detection capabilities. Prevented unauthorized access to my account.",
    "Customer support was unhelpful and could not resolve my transaction dispute.",
    "The mobile application interface is intuitive and easy to navigate.",
    "Security features are comprehensive but sometimes overly restrictive for legitimate use.",
    "Fast transaction processing and reliable service. Highly recommend to others.",
    "Account verification process is cumbersome and takes too long to complete.",
    "AI-powered insights help me understand my spending patterns better.",
    "Overall good experience but there is room for improvement in customer communication.",
)

FEEDBACK_CHANNELS: tuple[str, ...] = ("web", "mobile", "phone", "email")

BEHAVIOR_NOTES: tuple[str, ...] = (
    "Regular user with consistent patterns",
    "Occasional high-value transactions",
    "Frequent small transactions",
    "Irregular login patterns",
    "Normal behavior profile",
)

TRANSACTION_TYPES: tuple[str, ...] = ("purchase", "withdrawal", "transfer", "payment")

TRANSACTION_CITIES: tuple[str, ...] = ("Seattle", "Chicago", "Houston", "Minneapolis", "Cupertino")

PAYMENT_METHODS: tuple[str, ...] = ("credit_card", "debit_card", "mobile_pay", "atm_card")

TRANSACTION_NOTES: tuple[str, ...] = (
    "Regular transaction with normal spending pattern",
    "Typical purchase for this customer profile",
    "Transaction matches historical behavior",
    "Standard payment processing completed",
    "Routine transaction without anomalies",
    "Expected purchase based on customer habits",
    "Normal transaction timing and amount",
    "Standard purchase within expected parameters",
)
