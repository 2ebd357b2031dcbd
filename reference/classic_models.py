"""
Embedded reference data for the course's sample sales database.

Provides:
- CLASSIC_MODELS_DDL: the reference relational schema (MySQL DDL)
- SAMPLE_ROWS: a few rows per table for the optional execution check
- SEED_COLLECTIONS: example documents for the document-store chapters

Used whenever no schema_path / seed_path is configured.
"""


# =========================================================================
# RELATIONAL SCHEMA
# =========================================================================

CLASSIC_MODELS_DDL = """
CREATE TABLE productlines (
    productLine VARCHAR(50) NOT NULL,
    textDescription VARCHAR(4000),
    htmlDescription MEDIUMTEXT,
    image MEDIUMBLOB,
    PRIMARY KEY (productLine)
);

CREATE TABLE products (
    productCode VARCHAR(15) NOT NULL,
    productName VARCHAR(70) NOT NULL,
    productLine VARCHAR(50) NOT NULL,
    productScale VARCHAR(10) NOT NULL,
    productVendor VARCHAR(50) NOT NULL,
    productDescription TEXT NOT NULL,
    quantityInStock SMALLINT NOT NULL,
    buyPrice DECIMAL(10, 2) NOT NULL,
    MSRP DECIMAL(10, 2) NOT NULL,
    PRIMARY KEY (productCode),
    FOREIGN KEY (productLine) REFERENCES productlines (productLine)
);

CREATE TABLE offices (
    officeCode VARCHAR(10) NOT NULL,
    city VARCHAR(50) NOT NULL,
    phone VARCHAR(50) NOT NULL,
    addressLine1 VARCHAR(50) NOT NULL,
    addressLine2 VARCHAR(50),
    state VARCHAR(50),
    country VARCHAR(50) NOT NULL,
    postalCode VARCHAR(15) NOT NULL,
    territory VARCHAR(10) NOT NULL,
    PRIMARY KEY (officeCode)
);

CREATE TABLE employees (
    employeeNumber INT NOT NULL,
    lastName VARCHAR(50) NOT NULL,
    firstName VARCHAR(50) NOT NULL,
    extension VARCHAR(10) NOT NULL,
    email VARCHAR(100) NOT NULL,
    officeCode VARCHAR(10) NOT NULL,
    reportsTo INT,
    jobTitle VARCHAR(50) NOT NULL,
    PRIMARY KEY (employeeNumber),
    FOREIGN KEY (reportsTo) REFERENCES employees (employeeNumber),
    FOREIGN KEY (officeCode) REFERENCES offices (officeCode)
);

CREATE TABLE customers (
    customerNumber INT NOT NULL,
    customerName VARCHAR(50) NOT NULL,
    contactLastName VARCHAR(50) NOT NULL,
    contactFirstName VARCHAR(50) NOT NULL,
    phone VARCHAR(50) NOT NULL,
    addressLine1 VARCHAR(50) NOT NULL,
    addressLine2 VARCHAR(50),
    city VARCHAR(50) NOT NULL,
    state VARCHAR(50),
    postalCode VARCHAR(15),
    country VARCHAR(50) NOT NULL,
    salesRepEmployeeNumber INT,
    creditLimit DECIMAL(10, 2),
    PRIMARY KEY (customerNumber),
    FOREIGN KEY (salesRepEmployeeNumber) REFERENCES employees (employeeNumber)
);

CREATE TABLE payments (
    customerNumber INT NOT NULL,
    checkNumber VARCHAR(50) NOT NULL,
    paymentDate DATE NOT NULL,
    amount DECIMAL(10, 2) NOT NULL,
    PRIMARY KEY (customerNumber, checkNumber),
    FOREIGN KEY (customerNumber) REFERENCES customers (customerNumber)
);

CREATE TABLE orders (
    orderNumber INT NOT NULL,
    orderDate DATE NOT NULL,
    requiredDate DATE NOT NULL,
    shippedDate DATE,
    status VARCHAR(15) NOT NULL,
    comments TEXT,
    customerNumber INT NOT NULL,
    PRIMARY KEY (orderNumber),
    FOREIGN KEY (customerNumber) REFERENCES customers (customerNumber)
);

CREATE TABLE orderdetails (
    orderNumber INT NOT NULL,
    productCode VARCHAR(15) NOT NULL,
    quantityOrdered INT NOT NULL,
    priceEach DECIMAL(10, 2) NOT NULL,
    orderLineNumber SMALLINT NOT NULL,
    PRIMARY KEY (orderNumber, productCode),
    FOREIGN KEY (orderNumber) REFERENCES orders (orderNumber),
    FOREIGN KEY (productCode) REFERENCES products (productCode)
);
"""


# =========================================================================
# SAMPLE ROWS (column order as declared above)
# =========================================================================

SAMPLE_ROWS = {
    "productlines": [
        ("Classic Cars", "Attention car enthusiasts: make your wildest car ownership dreams come true.", None, None),
        ("Motorcycles", "Our motorcycles are state of the art replicas.", None, None),
        ("Planes", "Unique, diecast airplane and helicopter replicas.", None, None),
    ],
    "products": [
        ("S10_1678", "1969 Harley Davidson Ultimate Chopper", "Motorcycles", "1:10",
         "Min Lin Diecast", "This replica features working kickstand.", 7933, 48.81, 95.70),
        ("S10_1949", "1952 Alpine Renault 1300", "Classic Cars", "1:10",
         "Classic Metal Creations", "Turnable front wheels; steering function.", 7305, 98.58, 214.30),
        ("S18_1662", "1980s Black Hawk Helicopter", "Planes", "1:18",
         "Red Start Diecast", "1:18 scale replica of actual Army's UH-60L.", 5330, 77.27, 157.69),
        ("S24_2000", "1960 BSA Gold Star DBD34", "Motorcycles", "1:24",
         "Highway 66 Mini Classics", "Detailed scale replica with working suspension.", 15, 37.32, 76.17),
    ],
    "offices": [
        ("1", "San Francisco", "+1 650 219 4782", "100 Market Street", "Suite 300", "CA", "USA", "94080", "NA"),
        ("4", "Paris", "+33 14 723 4404", "43 Rue Jouffroy D'abbans", None, None, "France", "75017", "EMEA"),
        ("5", "Tokyo", "+81 33 224 5000", "4-1 Kioicho", None, "Chiyoda-Ku", "Japan", "102-8578", "Japan"),
    ],
    "employees": [
        (1002, "Murphy", "Diane", "x5800", "dmurphy@classicmodelcars.com", "1", None, "President"),
        (1056, "Patterson", "Mary", "x4611", "mpatterso@classicmodelcars.com", "1", 1002, "VP Sales"),
        (1165, "Jennings", "Leslie", "x3291", "ljennings@classicmodelcars.com", "1", 1056, "Sales Rep"),
        (1337, "Bondur", "Loui", "x6493", "lbondur@classicmodelcars.com", "4", 1056, "Sales Rep"),
        (1621, "Nishi", "Mami", "x101", "mnishi@classicmodelcars.com", "5", 1056, "Sales Rep"),
    ],
    "customers": [
        (103, "Atelier graphique", "Schmitt", "Carine ", "40.32.2555", "54, rue Royale", None,
         "Nantes", None, "44000", "France", 1337, 21000.00),
        (112, "Signal Gift Stores", "King", "Jean", "7025551838", "8489 Strong St.", None,
         "Las Vegas", "NV", "83030", "USA", 1165, 71800.00),
        (124, "Mini Gifts Distributors Ltd.", "Nelson", "Susan", "4155551450", "5677 Strong St.", None,
         "San Rafael", "CA", "97562", "USA", 1165, 210500.00),
        (148, "Dragon Souveniers, Ltd.", "Natividad", "Eric", "+65 221 7555", "Bronz Sok.",
         "Bronz Apt. 3/6 Tesvikiye", "Singapore", None, "079903", "Singapore", 1621, 103800.00),
        (125, "Havel & Zbyszek Co", "Piestrzeniewicz", "Zbyszek ", "(26) 642-7555", "ul. Filtrowa 68", None,
         "Warszawa", None, "01-012", "Poland", None, 0.00),
    ],
    "payments": [
        (103, "HQ336336", "2004-10-19", 6066.78),
        (103, "JM555205", "2003-06-05", 14571.44),
        (112, "BO864823", "2004-12-17", 14191.12),
        (124, "AE215433", "2005-03-05", 101244.59),
        (148, "BI507030", "2003-04-22", 44380.15),
    ],
    "orders": [
        (10100, "2003-01-06", "2003-01-13", "2003-01-10", "Shipped", None, 124),
        (10101, "2003-01-09", "2003-01-18", "2003-01-11", "Shipped", "Check on availability.", 148),
        (10102, "2003-01-10", "2003-01-18", "2003-01-14", "Shipped", None, 103),
        (10420, "2005-05-29", "2005-06-07", None, "In Process", None, 112),
    ],
    "orderdetails": [
        (10100, "S18_1662", 30, 136.00, 3),
        (10100, "S24_2000", 50, 55.09, 2),
        (10101, "S10_1949", 25, 108.06, 4),
        (10102, "S10_1678", 39, 95.55, 2),
        (10420, "S24_2000", 35, 60.26, 1),
    ],
}


# =========================================================================
# DOCUMENT-STORE SEED
# =========================================================================

SEED_COLLECTIONS = {
    "customers": [
        {
            "_id": 103,
            "customerName": "Atelier graphique",
            "contact": {"firstName": "Carine", "lastName": "Schmitt"},
            "phone": "40.32.2555",
            "address": {"line1": "54, rue Royale", "city": "Nantes", "postalCode": "44000", "country": "France"},
            "creditLimit": 21000.0,
            "salesRep": 1337,
        },
        {
            "_id": 112,
            "customerName": "Signal Gift Stores",
            "contact": {"firstName": "Jean", "lastName": "King"},
            "phone": "7025551838",
            "address": {"line1": "8489 Strong St.", "city": "Las Vegas", "state": "NV", "country": "USA"},
            "creditLimit": 71800.0,
            "tags": ["gifts", "retail"],
        },
    ],
    "products": [
        {
            "_id": "S10_1678",
            "productName": "1969 Harley Davidson Ultimate Chopper",
            "productLine": "Motorcycles",
            "vendor": "Min Lin Diecast",
            "quantityInStock": 7933,
            "price": {"buy": 48.81, "msrp": 95.70},
            "tags": ["1:10", "motorcycle"],
        },
        {
            "_id": "S18_1662",
            "productName": "1980s Black Hawk Helicopter",
            "productLine": "Planes",
            "vendor": "Red Start Diecast",
            "quantityInStock": 5330,
            "price": {"buy": 77.27, "msrp": 157.69},
        },
    ],
    "orders": [
        {
            "_id": 10100,
            "orderDate": "2003-01-06",
            "status": "Shipped",
            "customerId": 124,
            "items": [
                {"productCode": "S18_1662", "quantity": 30, "priceEach": 136.0},
                {"productCode": "S24_2000", "quantity": 50, "priceEach": 55.09},
            ],
            "total": 6834.5,
        },
        {
            "_id": 10420,
            "orderDate": "2005-05-29",
            "status": "In Process",
            "customerId": 112,
            "items": [{"productCode": "S24_2000", "quantity": 35, "priceEach": 60.26}],
            "comments": "Customer requested rush delivery",
            "total": 2109.1,
        },
    ],
    "employees": [
        {
            "_id": 1002,
            "firstName": "Diane",
            "lastName": "Murphy",
            "email": "dmurphy@classicmodelcars.com",
            "jobTitle": "President",
            "office": {"code": "1", "city": "San Francisco"},
        },
        {
            "_id": 1165,
            "firstName": "Leslie",
            "lastName": "Jennings",
            "email": "ljennings@classicmodelcars.com",
            "jobTitle": "Sales Rep",
            "reportsTo": 1056,
            "office": {"code": "1", "city": "San Francisco"},
        },
    ],
}
