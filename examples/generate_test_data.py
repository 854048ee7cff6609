import os
import csv
import random

if not os.path.exists("data"):
    os.mkdir("data")

if not os.path.exists("data/loans.csv"):
  # Loan performance records with some entries left empty
  servicers = ["Bank A", "Bank B", "Bank C", "Other", ""]
  loans = []
  for loan_id in range(1, 10001):
    loan_age = random.randint(0, 360)
    mths_remng = 360 - loan_age
    aj_mths_remng = mths_remng - random.randint(0, 3)
    act_endg_upb = round(random.uniform(1000, 300000), 2)
    servicer_name = random.choice(servicers)
    if random.random() < 0.1:
      # Loans that were not reported for the period
      mths_remng = aj_mths_remng = act_endg_upb = ""
    elif random.random() < 0.05:
      aj_mths_remng = ""
    loans.append([loan_id, loan_age, mths_remng, aj_mths_remng, act_endg_upb, servicer_name])

  with open('data/loans.csv', 'w', newline='') as f:
    writer = csv.writer(f)
    writer.writerow(["loan_id", "loan_age", "mths_remng", "aj_mths_remng", "act_endg_upb", "servicer_name"])
    writer.writerows(loans)
