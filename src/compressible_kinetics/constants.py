from scipy import constants

N_A = constants.Avogadro  # [1/mol]

k = constants.Boltzmann  # [J/K]

e = constants.e  # [C] elementary charge

R_universal = constants.R  # [J/(mol K)] universal gas constant

calorie = constants.calorie  # [J] thermochemical calorie

P_ref = constants.atm  # [Pa] standard-state pressure for equilibrium constants
