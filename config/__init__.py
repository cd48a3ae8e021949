# config package - authoritative source for all evaluator configuration.
#
# Sub-modules:
#   api_config.py    - chat-completion endpoint, authentication, default model
#   model_params.py  - sampling defaults, run defaults, price table, prompts
