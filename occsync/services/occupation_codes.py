"""
Standard Occupational Classification (SOC) codes synchronized by default.

The work list is static: one entry per detailed occupation, grouped by major
group, with the title used for risk scoring when the upstream API does not
supply one.
"""

from typing import Iterable, Optional

from occsync.models.occupation import WorkItem, is_valid_occ_code

STANDARD_OCCUPATIONS: dict[str, str] = {
    "11-1011": "Chief Executives",
    "11-1021": "General and Operations Managers",
    "11-2011": "Advertising and Promotions Managers",
    "11-2021": "Marketing Managers",
    "11-2022": "Sales Managers",
    "11-2031": "Public Relations and Fundraising Managers",
    "11-3011": "Administrative Services Managers",
    "11-3021": "Computer and Information Systems Managers",
    "11-3031": "Financial Managers",
    "11-3051": "Industrial Production Managers",
    "11-3061": "Purchasing Managers",
    "11-3071": "Transportation, Storage, and Distribution Managers",
    "11-3111": "Compensation and Benefits Managers",
    "11-3121": "Human Resources Managers",
    "11-3131": "Training and Development Managers",
    "11-9013": "Farmers, Ranchers, and Other Agricultural Managers",
    "11-9021": "Construction Managers",
    "11-9031": "Education Administrators, Preschool and Childcare Center/Program",
    "11-9032": "Education Administrators, Elementary and Secondary School",
    "11-9033": "Education Administrators, Postsecondary",
    "11-9041": "Architectural and Engineering Managers",
    "11-9051": "Food Service Managers",
    "11-9071": "Gaming Managers",
    "11-9081": "Lodging Managers",
    "11-9111": "Medical and Health Services Managers",
    "11-9121": "Natural Sciences Managers",
    "11-9131": "Postmasters and Mail Superintendents",
    "11-9141": "Property, Real Estate, and Community Association Managers",
    "11-9151": "Social and Community Service Managers",
    "11-9161": "Emergency Management Directors",
    "13-1011": "Agents and Business Managers of Artists, Performers, and Athletes",
    "13-1021": "Buyers and Purchasing Agents, Farm Products",
    "13-1022": "Wholesale and Retail Buyers, Except Farm Products",
    "13-1023": "Purchasing Agents, Except Wholesale, Retail, and Farm Products",
    "13-1031": "Claims Adjusters, Examiners, and Investigators",
    "13-1041": "Compliance Officers",
    "13-1051": "Cost Estimators",
    "13-1071": "Human Resources Specialists",
    "13-1075": "Labor Relations Specialists",
    "13-1081": "Logisticians",
    "13-1111": "Management Analysts",
    "13-1121": "Meeting, Convention, and Event Planners",
    "13-1131": "Fundraisers",
    "13-1141": "Compensation, Benefits, and Job Analysis Specialists",
    "13-1151": "Training and Development Specialists",
    "13-1161": "Market Research Analysts and Marketing Specialists",
    "13-1199": "Business Operations Specialists, All Other",
    "13-2011": "Accountants and Auditors",
    "13-2021": "Appraisers and Assessors of Real Estate",
    "13-2031": "Budget Analysts",
    "13-2041": "Credit Analysts",
    "13-2051": "Financial Analysts",
    "13-2052": "Personal Financial Advisors",
    "13-2053": "Insurance Underwriters",
    "13-2061": "Financial Examiners",
    "13-2071": "Credit Counselors",
    "13-2072": "Loan Officers",
    "13-2081": "Tax Examiners and Collectors, and Revenue Agents",
    "13-2082": "Tax Preparers",
    "15-1211": "Computer Systems Analysts",
    "15-1212": "Information Security Analysts",
    "15-1221": "Computer and Information Research Scientists",
    "15-1231": "Computer Network Support Specialists",
    "15-1232": "Computer User Support Specialists",
    "15-1241": "Computer Network Architects",
    "15-1242": "Database Administrators",
    "15-1243": "Database Architects",
    "15-1244": "Network and Computer Systems Administrators",
    "15-1251": "Computer Programmers",
    "15-1252": "Software Developers",
    "15-1253": "Software Quality Assurance Analysts and Testers",
    "15-1254": "Web Developers",
    "15-1255": "Web and Digital Interface Designers",
    "15-2011": "Actuaries",
    "15-2021": "Mathematicians",
    "15-2031": "Operations Research Analysts",
    "15-2041": "Statisticians",
    "15-2051": "Data Scientists",
    "17-1011": "Architects, Except Landscape and Naval",
    "17-1012": "Landscape Architects",
    "17-1022": "Surveyors",
    "17-2011": "Aerospace Engineers",
    "17-2021": "Agricultural Engineers",
    "17-2031": "Bioengineers and Biomedical Engineers",
    "17-2041": "Chemical Engineers",
    "17-2051": "Civil Engineers",
    "17-2061": "Computer Hardware Engineers",
    "17-2071": "Electrical Engineers",
    "17-2072": "Electronics Engineers, Except Computer",
    "17-2081": "Environmental Engineers",
    "17-2111": "Health and Safety Engineers",
    "17-2112": "Industrial Engineers",
    "17-2121": "Marine Engineers and Naval Architects",
    "17-2131": "Materials Engineers",
    "17-2141": "Mechanical Engineers",
    "17-2151": "Mining and Geological Engineers",
    "17-2161": "Nuclear Engineers",
    "17-2171": "Petroleum Engineers",
    "17-3011": "Architectural and Civil Drafters",
    "17-3012": "Electrical and Electronics Drafters",
    "17-3013": "Mechanical Drafters",
    "17-3021": "Aerospace Engineering and Operations Technologists and Technicians",
    "17-3022": "Civil Engineering Technologists and Technicians",
    "17-3023": "Electrical and Electronic Engineering Technologists and Technicians",
    "17-3024": "Electro-Mechanical and Mechatronics Technologists and Technicians",
    "17-3025": "Environmental Engineering Technologists and Technicians",
    "17-3026": "Industrial Engineering Technologists and Technicians",
    "17-3027": "Mechanical Engineering Technologists and Technicians",
    "19-1011": "Animal Scientists",
    "19-1012": "Food Scientists and Technologists",
    "19-1013": "Soil and Plant Scientists",
    "19-1021": "Biochemists and Biophysicists",
    "19-1022": "Microbiologists",
    "19-1023": "Zoologists and Wildlife Biologists",
    "19-1029": "Biological Scientists, All Other",
    "19-1031": "Conservation Scientists",
    "19-1032": "Foresters",
    "19-1041": "Epidemiologists",
    "19-1042": "Medical Scientists, Except Epidemiologists",
    "19-2011": "Astronomers",
    "19-2012": "Physicists",
    "19-2021": "Atmospheric and Space Scientists",
    "19-2031": "Chemists",
    "19-2032": "Materials Scientists",
    "19-2041": "Environmental Scientists and Specialists, Including Health",
    "19-2042": "Geoscientists, Except Hydrologists and Geographers",
    "19-2043": "Hydrologists",
    "19-3011": "Economists",
    "19-3022": "Survey Researchers",
    "19-3031": "Clinical, Counseling, and School Psychologists",
    "19-3032": "Industrial-Organizational Psychologists",
    "19-3039": "Psychologists, All Other",
    "19-3051": "Urban and Regional Planners",
    "19-3091": "Anthropologists and Archeologists",
    "19-3092": "Geographers",
    "19-3094": "Political Scientists",
    "19-3099": "Social Scientists and Related Workers, All Other",
    "21-1011": "Substance Abuse and Behavioral Disorder Counselors",
    "21-1012": "Educational, Guidance, and Career Counselors and Advisors",
    "21-1013": "Marriage and Family Therapists",
    "21-1014": "Mental Health Counselors",
    "21-1015": "Rehabilitation Counselors",
    "21-1018": "Substance Abuse, Behavioral Disorder, and Mental Health Counselors",
    "21-1021": "Child, Family, and School Social Workers",
    "21-1022": "Healthcare Social Workers",
    "21-1023": "Mental Health and Substance Abuse Social Workers",
    "21-1091": "Health Education Specialists",
    "21-1092": "Probation Officers and Correctional Treatment Specialists",
    "21-1093": "Social and Human Service Assistants",
    "21-1094": "Community Health Workers",
    "21-1099": "Community and Social Service Specialists, All Other",
    "21-2011": "Clergy",
    "21-2021": "Directors, Religious Activities and Education",
    "23-1011": "Lawyers",
    "23-1012": "Judicial Law Clerks",
    "23-1022": "Arbitrators, Mediators, and Conciliators",
    "23-1023": "Judges, Magistrate Judges, and Magistrates",
    "23-2011": "Paralegals and Legal Assistants",
    "23-2093": "Title Examiners, Abstractors, and Searchers",
    "23-2099": "Legal Support Workers, All Other",
    "25-1011": "Business Teachers, Postsecondary",
    "25-1021": "Computer Science Teachers, Postsecondary",
    "25-1022": "Mathematical Science Teachers, Postsecondary",
    "25-1031": "Architecture Teachers, Postsecondary",
    "25-1032": "Engineering Teachers, Postsecondary",
    "25-1041": "Agricultural Sciences Teachers, Postsecondary",
    "25-1042": "Biological Science Teachers, Postsecondary",
    "25-1052": "Chemistry Teachers, Postsecondary",
    "25-1054": "Physics Teachers, Postsecondary",
    "25-1061": "Anthropology and Archeology Teachers, Postsecondary",
    "25-1062": "Area, Ethnic, and Cultural Studies Teachers, Postsecondary",
    "25-1063": "Economics Teachers, Postsecondary",
    "25-1064": "Geography Teachers, Postsecondary",
    "25-1065": "Political Science Teachers, Postsecondary",
    "25-1066": "Psychology Teachers, Postsecondary",
    "25-1067": "Sociology Teachers, Postsecondary",
    "25-1071": "Health Specialties Teachers, Postsecondary",
    "25-1072": "Nursing Instructors and Teachers, Postsecondary",
    "25-1081": "Education Teachers, Postsecondary",
    "25-1111": "Criminal Justice and Law Enforcement Teachers, Postsecondary",
    "25-1112": "Law Teachers, Postsecondary",
    "25-1121": "Art, Drama, and Music Teachers, Postsecondary",
    "25-1122": "Communications Teachers, Postsecondary",
    "25-1123": "English Language and Literature Teachers, Postsecondary",
    "25-1124": "Foreign Language and Literature Teachers, Postsecondary",
    "25-1125": "History Teachers, Postsecondary",
    "25-1126": "Philosophy and Religion Teachers, Postsecondary",
    "25-2011": "Preschool Teachers, Except Special Education",
    "25-2012": "Kindergarten Teachers, Except Special Education",
    "25-2021": "Elementary School Teachers, Except Special Education",
    "25-2022": "Middle School Teachers, Except Special and Career/Technical Education",
    "25-2031": "Secondary School Teachers, Except Special and Career/Technical Education",
    "25-2052": "Special Education Teachers, Kindergarten and Elementary School",
    "25-2053": "Special Education Teachers, Middle School",
    "25-2054": "Special Education Teachers, Secondary School",
    "25-3011": "Adult Basic Education, Adult Secondary Education, and English as a Second Language Instructors",
    "25-3021": "Self-Enrichment Teachers",
    "25-3031": "Substitute Teachers, Short-Term",
    "25-4022": "Librarians and Media Collections Specialists",
    "25-4031": "Library Technicians",
    "25-9041": "Teacher Assistants",
    "27-1011": "Art Directors",
    "27-1012": "Craft Artists",
    "27-1013": "Fine Artists, Including Painters, Sculptors, and Illustrators",
    "27-1014": "Special Effects Artists and Animators",
    "27-1019": "Artists and Related Workers, All Other",
    "27-1021": "Commercial and Industrial Designers",
    "27-1022": "Fashion Designers",
    "27-1023": "Floral Designers",
    "27-1024": "Graphic Designers",
    "27-1025": "Interior Designers",
    "27-1026": "Merchandise Displayers and Window Trimmers",
    "27-1027": "Set and Exhibit Designers",
    "27-1029": "Designers, All Other",
    "27-2011": "Actors",
    "27-2012": "Producers and Directors",
    "27-2021": "Athletes and Sports Competitors",
    "27-2022": "Coaches and Scouts",
    "27-2023": "Umpires, Referees, and Other Sports Officials",
    "27-2031": "Dancers",
    "27-2032": "Choreographers",
    "27-2041": "Music Directors and Composers",
    "27-2042": "Musicians and Singers",
    "27-3011": "Radio, Television, and Other Announcers",
    "27-3021": "Broadcast Announcers and Radio Disc Jockeys",
    "27-3022": "Reporters and Correspondents",
    "27-3031": "Public Relations Specialists",
    "27-3041": "Editors",
    "27-3042": "Technical Writers",
    "27-3043": "Writers and Authors",
    "27-3091": "Interpreters and Translators",
    "27-4011": "Audio and Video Technicians",
    "27-4021": "Photographers",
    "27-4031": "Camera Operators, Television, Video, and Film",
    "27-4032": "Film and Video Editors",
    "29-1011": "Chiropractors",
    "29-1021": "Dentists, General",
    "29-1022": "Oral and Maxillofacial Surgeons",
    "29-1023": "Orthodontists",
    "29-1024": "Prosthodontists",
    "29-1029": "Dentists, All Other Specialists",
    "29-1031": "Dietitians and Nutritionists",
    "29-1041": "Optometrists",
    "29-1051": "Pharmacists",
    "29-1071": "Physician Assistants",
    "29-1081": "Podiatrists",
    "29-1122": "Occupational Therapists",
    "29-1123": "Physical Therapists",
    "29-1124": "Radiation Therapists",
    "29-1125": "Recreational Therapists",
    "29-1126": "Respiratory Therapists",
    "29-1127": "Speech-Language Pathologists",
    "29-1128": "Exercise Physiologists",
    "29-1129": "Therapists, All Other",
    "29-1131": "Veterinarians",
    "29-1141": "Registered Nurses",
    "29-1151": "Nurse Anesthetists",
    "29-1161": "Nurse Midwives",
    "29-1171": "Nurse Practitioners",
    "29-1211": "Anesthesiologists",
    "29-1212": "Cardiologists",
    "29-1213": "Dermatologists",
    "29-1214": "Emergency Medicine Physicians",
    "29-1215": "Family Medicine Physicians",
    "29-1216": "General Internal Medicine Physicians",
    "29-1217": "Neurologists",
    "29-1218": "Obstetricians and Gynecologists",
    "29-1221": "Pediatricians, General",
    "29-1222": "Physicians, Pathologists",
    "29-1223": "Psychiatrists",
    "29-1224": "Radiologists",
    "29-1229": "Physicians, All Other",
    "29-1241": "Ophthalmologists, Except Pediatric",
    "29-1242": "Orthopedic Surgeons, Except Pediatric",
    "29-1243": "Pediatric Surgeons",
    "29-1249": "Surgeons, All Other",
    "29-2011": "Medical and Clinical Laboratory Technologists",
    "29-2012": "Medical and Clinical Laboratory Technicians",
    "29-2031": "Cardiovascular Technologists and Technicians",
    "29-2032": "Diagnostic Medical Sonographers",
    "29-2033": "Nuclear Medicine Technologists",
    "29-2034": "Radiologic Technologists and Technicians",
    "29-2041": "Emergency Medical Technicians",
    "29-2042": "Paramedics",
    "29-2051": "Dietetic Technicians",
    "29-2052": "Pharmacy Technicians",
    "29-2053": "Psychiatric Technicians",
    "29-2055": "Surgical Technologists",
    "29-2061": "Licensed Practical and Licensed Vocational Nurses",
    "29-2071": "Medical Records Specialists",
    "29-2081": "Opticians, Dispensing",
    "29-2099": "Health Technologists and Technicians, All Other",
    "31-1120": "Home Health and Personal Care Aides",
    "31-1131": "Nursing Assistants",
    "31-1132": "Orderlies",
    "31-1133": "Psychiatric Aides",
    "31-2011": "Occupational Therapy Assistants",
    "31-2012": "Occupational Therapy Aides",
    "31-2021": "Physical Therapist Assistants",
    "31-2022": "Physical Therapist Aides",
    "31-9011": "Massage Therapists",
    "31-9091": "Dental Assistants",
    "31-9092": "Medical Assistants",
    "31-9093": "Medical Equipment Preparers",
    "31-9094": "Medical Transcriptionists",
    "31-9095": "Pharmacy Aides",
    "31-9096": "Veterinary Assistants and Laboratory Animal Caretakers",
    "31-9097": "Phlebotomists",
    "31-9099": "Healthcare Support Workers, All Other",
    "33-1011": "First-Line Supervisors of Correctional Officers",
    "33-1012": "First-Line Supervisors of Police and Detectives",
    "33-1021": "First-Line Supervisors of Firefighting and Prevention Workers",
    "33-1099": "First-Line Supervisors of Protective Service Workers, All Other",
    "33-2011": "Firefighters",
    "33-2021": "Fire Inspectors and Investigators",
    "33-2022": "Forest Fire Inspectors and Prevention Specialists",
    "33-3011": "Bailiffs",
    "33-3012": "Correctional Officers and Jailers",
    "33-3021": "Detectives and Criminal Investigators",
    "33-3031": "Fish and Game Wardens",
    "33-3041": "Parking Enforcement Workers",
    "33-3051": "Police and Sheriff's Patrol Officers",
    "33-3052": "Transit and Railroad Police",
    "33-9011": "Animal Control Workers",
    "33-9021": "Private Detectives and Investigators",
    "33-9031": "Gaming Surveillance Officers and Gaming Investigators",
    "33-9032": "Security Guards",
    "33-9091": "Crossing Guards and Flaggers",
    "33-9093": "Transportation Security Screeners",
    "33-9099": "Protective Service Workers, All Other",
    "35-1011": "Chefs and Head Cooks",
    "35-1012": "First-Line Supervisors of Food Preparation and Serving Workers",
    "35-2011": "Cooks, Fast Food",
    "35-2012": "Cooks, Institution and Cafeteria",
    "35-2014": "Cooks, Restaurant",
    "35-2015": "Cooks, Short Order",
    "35-2021": "Food Preparation Workers",
    "35-3011": "Bartenders",
    "35-3023": "Fast Food and Counter Workers",
    "35-3031": "Waiters and Waitresses",
    "35-3041": "Food Servers, Nonrestaurant",
    "35-9011": "Dining Room and Cafeteria Attendants and Bartender Helpers",
    "35-9021": "Dishwashers",
    "35-9031": "Hosts and Hostesses, Restaurant, Lounge, and Coffee Shop",
    "35-9099": "Food Preparation and Serving Related Workers, All Other",
    "37-1011": "First-Line Supervisors of Housekeeping and Janitorial Workers",
    "37-1012": "First-Line Supervisors of Landscaping, Lawn Service, and Groundskeeping Workers",
    "37-2011": "Janitors and Cleaners, Except Maids and Housekeeping Cleaners",
    "37-2012": "Maids and Housekeeping Cleaners",
    "37-2021": "Pest Control Workers",
    "37-3011": "Landscaping and Groundskeeping Workers",
    "37-3012": "Pesticide Handlers, Sprayers, and Applicators, Vegetation",
    "37-3013": "Tree Trimmers and Pruners",
    "39-1011": "First-Line Supervisors of Gaming Workers",
    "39-1012": "First-Line Supervisors of Personal Service Workers",
    "39-2011": "Animal Trainers",
    "39-2021": "Animal Caretakers",
    "39-3011": "Gaming Dealers",
    "39-3012": "Gaming and Sports Book Writers and Runners",
    "39-3031": "Ushers, Lobby Attendants, and Ticket Takers",
    "39-3091": "Amusement and Recreation Attendants",
    "39-3092": "Costume Attendants",
    "39-3093": "Locker Room, Coatroom, and Dressing Room Attendants",
    "39-4011": "Embalmers",
    "39-4012": "Funeral Attendants",
    "39-4031": "Morticians, Undertakers, and Funeral Arrangers",
    "39-5011": "Barbers",
    "39-5012": "Hairdressers, Hairstylists, and Cosmetologists",
    "39-5091": "Makeup Artists, Theatrical and Performance",
    "39-5092": "Manicurists and Pedicurists",
    "39-5093": "Shampooers",
    "39-5094": "Skincare Specialists",
    "39-6011": "Baggage Porters and Bellhops",
    "39-6012": "Concierges",
    "39-7011": "Tour Guides and Escorts",
    "39-7012": "Travel Guides",
    "39-9011": "Childcare Workers",
    "39-9021": "Personal Care Aides",
    "39-9031": "Exercise Trainers and Group Fitness Instructors",
    "39-9032": "Recreation Workers",
    "39-9041": "Residential Advisors",
    "41-1011": "First-Line Supervisors of Retail Sales Workers",
    "41-1012": "First-Line Supervisors of Non-Retail Sales Workers",
    "41-2011": "Cashiers",
    "41-2021": "Counter and Rental Clerks",
    "41-2022": "Parts Salespersons",
    "41-2031": "Retail Salespersons",
    "41-3011": "Advertising Sales Agents",
    "41-3021": "Insurance Sales Agents",
    "41-3031": "Securities, Commodities, and Financial Services Sales Agents",
    "41-3041": "Travel Agents",
    "41-3091": "Sales Representatives of Services, Except Advertising, Insurance, Financial Services, and Travel",
    "41-4011": "Sales Representatives, Wholesale and Manufacturing, Technical and Scientific Products",
    "41-4012": "Sales Representatives, Wholesale and Manufacturing, Except Technical and Scientific Products",
    "41-9011": "Demonstrators and Product Promoters",
    "41-9021": "Real Estate Brokers",
    "41-9022": "Real Estate Sales Agents",
    "41-9031": "Sales Engineers",
    "41-9041": "Telemarketers",
    "41-9091": "Door-to-Door Sales Workers, News and Street Vendors, and Related Workers",
    "43-1011": "First-Line Supervisors of Office and Administrative Support Workers",
    "43-2011": "Switchboard Operators, Including Answering Service",
    "43-3011": "Bill and Account Collectors",
    "43-3021": "Billing and Posting Clerks",
    "43-3031": "Bookkeeping, Accounting, and Auditing Clerks",
    "43-3051": "Payroll and Timekeeping Clerks",
    "43-3061": "Procurement Clerks",
    "43-3071": "Tellers",
    "43-4011": "Brokerage Clerks",
    "43-4021": "Correspondence Clerks",
    "43-4031": "Court, Municipal, and License Clerks",
    "43-4041": "Credit Authorizers, Checkers, and Clerks",
    "43-4051": "Customer Service Representatives",
    "43-4061": "Eligibility Interviewers, Government Programs",
    "43-4071": "File Clerks",
    "43-4081": "Hotel, Motel, and Resort Desk Clerks",
    "43-4111": "Interviewers, Except Eligibility and Loan",
    "43-4121": "Library Assistants, Clerical",
    "43-4131": "Loan Interviewers and Clerks",
    "43-4141": "New Accounts Clerks",
    "43-4151": "Order Clerks",
    "43-4161": "Human Resources Assistants, Except Payroll and Timekeeping",
    "43-4171": "Receptionists and Information Clerks",
    "43-4199": "Information and Record Clerks, All Other",
    "43-5011": "Cargo and Freight Agents",
    "43-5021": "Couriers and Messengers",
    "43-5031": "Police, Fire, and Ambulance Dispatchers",
    "43-5032": "Dispatchers, Except Police, Fire, and Ambulance",
    "43-5041": "Meter Readers, Utilities",
    "43-5051": "Postal Service Clerks",
    "43-5052": "Postal Service Mail Carriers",
    "43-5053": "Postal Service Mail Sorters, Processors, and Processing Machine Operators",
    "43-5061": "Production, Planning, and Expediting Clerks",
    "43-5071": "Shipping, Receiving, and Inventory Clerks",
    "43-5081": "Stock Clerks and Order Fillers",
    "43-5111": "Weighers, Measurers, Checkers, and Samplers, Recordkeeping",
    "43-6011": "Executive Secretaries and Executive Administrative Assistants",
    "43-6012": "Legal Secretaries and Administrative Assistants",
    "43-6013": "Medical Secretaries and Administrative Assistants",
    "43-6014": "Secretaries and Administrative Assistants, Except Legal, Medical, and Executive",
    "43-9021": "Data Entry Keyers",
    "43-9022": "Word Processors and Typists",
    "43-9031": "Desktop Publishers",
    "43-9041": "Insurance Claims and Policy Processing Clerks",
    "43-9051": "Mail Clerks and Mail Machine Operators, Except Postal Service",
    "43-9061": "Office Clerks, General",
    "43-9071": "Office Machine Operators, Except Computer",
    "43-9081": "Proofreaders and Copy Markers",
    "45-1011": "First-Line Supervisors of Farming, Fishing, and Forestry Workers",
    "45-2011": "Agricultural Inspectors",
    "45-2021": "Animal Breeders",
    "45-2041": "Graders and Sorters, Agricultural Products",
    "45-2091": "Agricultural Equipment Operators",
    "45-2092": "Farmworkers and Laborers, Crop, Nursery, and Greenhouse",
    "45-2093": "Farmworkers, Farm, Ranch, and Aquacultural Animals",
    "45-3011": "Fishers and Related Fishing Workers",
    "45-3021": "Hunters and Trappers",
    "45-4011": "Forest and Conservation Workers",
    "45-4021": "Fallers",
    "45-4022": "Logging Equipment Operators",
    "45-4023": "Log Graders and Scalers",
    "47-1011": "First-Line Supervisors of Construction Trades and Extraction Workers",
    "47-2011": "Boilermakers",
    "47-2021": "Brickmasons and Blockmasons",
    "47-2022": "Stonemasons",
    "47-2031": "Carpenters",
    "47-2041": "Carpet Installers",
    "47-2042": "Floor Layers, Except Carpet, Wood, and Hard Tiles",
    "47-2043": "Floor Sanders and Finishers",
    "47-2044": "Tile and Stone Setters",
    "47-2051": "Cement Masons and Concrete Finishers",
    "47-2061": "Construction Laborers",
    "47-2071": "Paving, Surfacing, and Tamping Equipment Operators",
    "47-2072": "Pile Driver Operators",
    "47-2073": "Operating Engineers and Other Construction Equipment Operators",
    "47-2081": "Drywall and Ceiling Tile Installers",
    "47-2082": "Tapers",
    "47-2111": "Electricians",
    "47-2121": "Glaziers",
    "47-2131": "Insulation Workers, Floor, Ceiling, and Wall",
    "47-2132": "Insulation Workers, Mechanical",
    "47-2141": "Painters, Construction and Maintenance",
    "47-2142": "Paperhangers",
    "47-2151": "Pipelayers",
    "47-2152": "Plumbers, Pipefitters, and Steamfitters",
    "47-2161": "Plasterers and Stucco Masons",
    "47-2171": "Reinforcing Iron and Rebar Workers",
    "47-2181": "Roofers",
    "47-2211": "Sheet Metal Workers",
    "47-2221": "Structural Iron and Steel Workers",
    "47-3011": "Helpers--Brickmasons, Blockmasons, Stonemasons, and Tile and Marble Setters",
    "47-3012": "Helpers--Carpenters",
    "47-3013": "Helpers--Electricians",
    "47-3014": "Helpers--Painters, Paperhangers, Plasterers, and Stucco Masons",
    "47-3015": "Helpers--Pipelayers, Plumbers, Pipefitters, and Steamfitters",
    "47-3016": "Helpers--Roofers",
    "47-4011": "Construction and Building Inspectors",
    "47-4021": "Elevator and Escalator Installers and Repairers",
    "47-4031": "Fence Erectors",
    "47-4041": "Hazardous Materials Removal Workers",
    "47-4051": "Highway Maintenance Workers",
    "47-4061": "Rail-Track Laying and Maintenance Equipment Operators",
    "47-4071": "Septic Tank Servicers and Sewer Pipe Cleaners",
    "47-4091": "Segmental Pavers",
    "47-4099": "Construction and Related Workers, All Other",
    "47-5011": "Derrick Operators, Oil and Gas",
    "47-5012": "Rotary Drill Operators, Oil and Gas",
    "47-5013": "Service Unit Operators, Oil and Gas",
    "47-5021": "Earth Drillers, Except Oil and Gas",
    "47-5031": "Explosives Workers, Ordnance Handling Experts, and Blasters",
    "47-5041": "Continuous Mining Machine Operators",
    "47-5042": "Mine Cutting and Channeling Machine Operators",
    "47-5049": "Mining Machine Operators, All Other",
    "47-5051": "Rock Splitters, Quarry",
    "47-5061": "Roof Bolters, Mining",
    "47-5071": "Roustabouts, Oil and Gas",
    "47-5081": "Helpers--Extraction Workers",
    "49-1011": "First-Line Supervisors of Mechanics, Installers, and Repairers",
    "49-2011": "Computer, Automated Teller, and Office Machine Repairers",
    "49-2021": "Radio, Cellular, and Tower Equipment Installers and Repairers",
    "49-2022": "Telecommunications Equipment Installers and Repairers, Except Line Installers",
    "49-2091": "Avionics Technicians",
    "49-2092": "Electric Motor, Power Tool, and Related Repairers",
    "49-2093": "Electrical and Electronics Installers and Repairers, Transportation Equipment",
    "49-2094": "Electrical and Electronics Repairers, Commercial and Industrial Equipment",
    "49-2095": "Electrical and Electronics Repairers, Powerhouse, Substation, and Relay",
    "49-2096": "Electronic Equipment Installers and Repairers, Motor Vehicles",
    "49-2097": "Audiovisual Equipment Installers and Repairers",
    "49-2098": "Security and Fire Alarm Systems Installers",
    "49-3011": "Aircraft Mechanics and Service Technicians",
    "49-3021": "Automotive Body and Related Repairers",
    "49-3022": "Automotive Glass Installers and Repairers",
    "49-3023": "Automotive Service Technicians and Mechanics",
    "49-3031": "Bus and Truck Mechanics and Diesel Engine Specialists",
    "49-3041": "Farm Equipment Mechanics and Service Technicians",
    "49-3042": "Mobile Heavy Equipment Mechanics, Except Engines",
    "49-3043": "Rail Car Repairers",
    "49-3051": "Motorboat Mechanics and Service Technicians",
    "49-3052": "Motorcycle Mechanics",
    "49-3053": "Outdoor Power Equipment and Other Small Engine Mechanics",
    "49-3091": "Bicycle Repairers",
    "49-3092": "Recreational Vehicle Service Technicians",
    "49-3093": "Tire Repairers and Changers",
    "49-9011": "Mechanical Door Repairers",
    "49-9012": "Control and Valve Installers and Repairers, Except Mechanical Door",
    "49-9021": "Heating, Air Conditioning, and Refrigeration Mechanics and Installers",
    "49-9031": "Home Appliance Repairers",
    "49-9041": "Industrial Machinery Mechanics",
    "49-9043": "Maintenance Workers, Machinery",
    "49-9044": "Millwrights",
    "49-9051": "Electrical Power-Line Installers and Repairers",
    "49-9052": "Telecommunications Line Installers and Repairers",
    "49-9061": "Camera and Photographic Equipment Repairers",
    "49-9062": "Medical Equipment Repairers",
    "49-9063": "Musical Instrument Repairers and Tuners",
    "49-9064": "Watch and Clock Repairers",
    "49-9071": "Maintenance and Repair Workers, General",
    "49-9081": "Wind Turbine Service Technicians",
    "49-9091": "Coin, Vending, and Amusement Machine Servicers and Repairers",
    "49-9092": "Commercial Divers",
    "49-9093": "Fabric Menders, Except Garment",
    "49-9094": "Locksmiths and Safe Repairers",
    "49-9095": "Manufactured Building and Mobile Home Installers",
    "49-9096": "Riggers",
    "49-9097": "Signal and Track Switch Repairers",
    "49-9098": "Helpers--Installation, Maintenance, and Repair Workers",
    "51-1011": "First-Line Supervisors of Production and Operating Workers",
    "51-2011": "Aircraft Structure, Surfaces, Rigging, and Systems Assemblers",
    "51-2021": "Coil Winders, Tapers, and Finishers",
    "51-2022": "Electrical and Electronic Equipment Assemblers",
    "51-2023": "Electromechanical Equipment Assemblers",
    "51-2031": "Engine and Other Machine Assemblers",
    "51-2041": "Structural Metal Fabricators and Fitters",
    "51-2051": "Fiberglass Laminators and Fabricators",
    "51-2061": "Timing Device Assemblers and Adjusters",
    "51-2091": "Fiberglass Laminators and Fabricators",
    "51-2092": "Team Assemblers",
    "51-2093": "Timing Device Assemblers and Adjusters",
    "51-3011": "Bakers",
    "51-3021": "Butchers and Meat Cutters",
    "51-3022": "Meat, Poultry, and Fish Cutters and Trimmers",
    "51-3023": "Slaughterers and Meat Packers",
    "51-3091": "Food and Tobacco Roasting, Baking, and Drying Machine Operators and Tenders",
    "51-3092": "Food Batchmakers",
    "51-3093": "Food Cooking Machine Operators and Tenders",
    "51-4011": "Computer-Controlled Machine Tool Operators, Metal and Plastic",
    "51-4012": "Computer Numerically Controlled Machine Tool Programmers, Metal and Plastic",
    "51-4021": "Extruding and Drawing Machine Setters, Operators, and Tenders, Metal and Plastic",
    "51-4022": "Forging Machine Setters, Operators, and Tenders, Metal and Plastic",
    "51-4023": "Rolling Machine Setters, Operators, and Tenders, Metal and Plastic",
    "51-4031": "Cutting, Punching, and Press Machine Setters, Operators, and Tenders, Metal and Plastic",
    "51-4032": "Drilling and Boring Machine Tool Setters, Operators, and Tenders, Metal and Plastic",
    "51-4033": "Grinding, Lapping, Polishing, and Buffing Machine Tool Setters, Operators, and Tenders, Metal and Plastic",
    "51-4034": "Lathe and Turning Machine Tool Setters, Operators, and Tenders, Metal and Plastic",
    "51-4035": "Milling and Planing Machine Setters, Operators, and Tenders, Metal and Plastic",
    "51-4041": "Machinists",
    "51-4051": "Metal-Refining Furnace Operators and Tenders",
}


def title_for(code: str) -> Optional[str]:
    return STANDARD_OCCUPATIONS.get(code)


def load_work_items(codes: Optional[Iterable[str]] = None) -> list[WorkItem]:
    """
    Build the work list for a sync run.

    Args:
        codes: Restrict the run to these codes (default: every standard occupation)

    Returns:
        Work items in list order, de-duplicated, with malformed codes dropped
    """
    source = STANDARD_OCCUPATIONS.keys() if codes is None else codes
    seen: set[str] = set()
    items: list[WorkItem] = []
    for code in source:
        code = code.strip()
        if code in seen or not is_valid_occ_code(code):
            continue
        seen.add(code)
        items.append(WorkItem(code=code, title=STANDARD_OCCUPATIONS.get(code)))
    return items
