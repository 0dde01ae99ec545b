from algepi.examples import seir, seird, sir

EXAMPLES = {
    "sir": sir,
    "seir": seir,
    "seird": seird,
}
