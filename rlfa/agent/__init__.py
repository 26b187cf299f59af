"""
Learners and policies built on top of rlfa.fa
"""
from rlfa.agent.base_agent import Learner, Response, ValuePredictor
from rlfa.agent.policies import Policy, Random, Greedy, EpsilonGreedy, Gibbs
from rlfa.agent.td import TD, TDLambda
from rlfa.agent.gtd import GTD2, TDC
from rlfa.agent.lstd import LSTD
from rlfa.agent.q_learning import QLearning, SARSA, SARSALambda, GreedyGQ
